"""
Version information for the Riskified orders SDK.

Single source of truth: pyproject.toml
Runtime access via importlib.metadata with fallback.
"""

from __future__ import annotations

# Fallback version if package metadata unavailable (dev mode)
_FALLBACK_VERSION = "1.0.0"

PRODUCT_NAME = "riskified_python_sdk"


def get_version() -> str:
    """Get the package version from metadata or fallback."""
    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("riskified-sdk")
    except (ImportError, PackageNotFoundError):
        return _FALLBACK_VERSION


VERSION = get_version()

USER_AGENT = f"{PRODUCT_NAME}/{VERSION}"
