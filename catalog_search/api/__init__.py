"""
API module for catalog search service.

Provides FastAPI application and routes for hybrid catalog search
and index rebuilds.
"""

from catalog_search.api.app import create_app
from catalog_search.api.dependencies import ServiceContainer, build_services

__all__ = [
    "create_app",
    "ServiceContainer",
    "build_services",
]
