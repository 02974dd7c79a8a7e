"""
Detecting the client's own version.

The version is determined only once at import time from the installed
distribution's metadata, so that the codebase does not need in-code bumps.
It is used to self-identify in the ``User-Agent`` header.
"""
import importlib.metadata

DISTRIBUTION_NAME = 'attio-client'

version: str | None = None

try:
    version = importlib.metadata.version(DISTRIBUTION_NAME)
except importlib.metadata.PackageNotFoundError:
    pass  # running from a source tree, not installed.
