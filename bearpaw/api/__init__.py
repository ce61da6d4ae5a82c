"""HTTP JSON API for the cabin manager."""

from bearpaw.api.app import create_app

__all__ = ["create_app"]
