"""Typed per-collection repositories over the record store."""

from bearpaw.repositories.repository import RecordRepositories, Repository

__all__ = ["RecordRepositories", "Repository"]
