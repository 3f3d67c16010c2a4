"""
odata_proxy package

FastAPI application that re-exposes an upstream JSON collection of
transactions through a small subset of the OData v4 query protocol.
"""

from .main import app, create_app

__all__ = ["app", "create_app"]
