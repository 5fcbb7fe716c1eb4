"""Tenancy presentation layer: HTTP routes and batch commands."""
