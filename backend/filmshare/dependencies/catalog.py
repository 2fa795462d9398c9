"""Catalog client dependency."""

from fastapi import Request

from filmshare.services.tmdb_client import TMDBClient


def get_catalog(request: Request) -> TMDBClient:
    """The process-wide TMDB client built during app startup."""
    catalog = getattr(request.app.state, "catalog", None)
    if catalog is None:
        catalog = TMDBClient()
        request.app.state.catalog = catalog
    return catalog
