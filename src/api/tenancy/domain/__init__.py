"""Tenancy domain: tenants, pooled databases and routing entries."""
