"""HTTP surface for the dependency engine."""

from filedep.web.app import create_app

__all__ = ["create_app"]
