"""
Application version management.

The version follows semantic versioning (MAJOR.MINOR.PATCH) and is reported by
the root and health endpoints.
"""

import os

APP_VERSION = "1.0.0"

# Build metadata (overridden at build time via environment variables)
BUILD_SHA = os.environ.get("BUILD_SHA", "dev")


def get_full_version() -> str:
    """Version string including the short build SHA when one is set."""
    if BUILD_SHA != "dev":
        return f"{APP_VERSION}+{BUILD_SHA[:8]}"
    return APP_VERSION
