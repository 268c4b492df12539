"""npm registry package."""

from .client import NpmClient, encode_package_name  # noqa: F401

__all__ = ["NpmClient", "encode_package_name"]
