"""Infrastructure adapters of the tenancy bounded context."""
