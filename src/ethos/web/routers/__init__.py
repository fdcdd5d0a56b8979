"""API routers, one per core component."""
