"""Storefront consumer API (FastAPI routers, schemas and middleware)."""
