"""HTTP API for owners and tenants."""
