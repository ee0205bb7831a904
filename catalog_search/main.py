"""
Main entry point for catalog-search.

Creates the FastAPI application instance for uvicorn.
"""

from catalog_search.api.app import create_app
from catalog_search.core.logging import setup_structured_logging

setup_structured_logging()

# Create application instance
app = create_app()
