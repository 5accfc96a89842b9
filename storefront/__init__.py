"""
Backend package for the storefront API.

This package provides a FastAPI application over a JSON file store (local
development) or a SQL database (production) for the product catalog,
preorders, uploads and admin authentication.
"""
