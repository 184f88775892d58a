"""Command line code generation for ff-record models."""

from .main import app

__all__ = ["app"]
