"""HTTP boundary for the MCePtion configuration service."""

from mception.api.app import create_app

__all__ = ["create_app"]
