# larrix/errors.py
from __future__ import annotations


class LarrixError(Exception):
    pass

class ConfigurationError(LarrixError):
    """Missing or invalid project configuration. Raised before anything is written."""

class FileSystemError(LarrixError):
    """Read/write/permission failure while staging or archiving."""

class ArchiveError(FileSystemError):
    """Archive would need Zip64 or multi-disk support."""

class InjectionError(LarrixError):
    """Live-reload bootstrap could not be prepended to the background script."""

class ScaffoldError(LarrixError):
    pass
