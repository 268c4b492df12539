"""Pub registry package."""

from .client import PubClient  # noqa: F401

__all__ = ["PubClient"]
