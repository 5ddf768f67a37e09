"""Exception hierarchy for the Fedora export tool."""


class ExportToolError(Exception):
    """Base exception for export tool errors."""
    pass


class ConfigError(ExportToolError, ValueError):
    """Missing, unreadable or invalid configuration."""
    pass


class RepositoryConnectionError(ExportToolError):
    """Repository unreachable or the connectivity test datastream is missing."""
    pass


class InvalidIdentifierError(ExportToolError):
    """Object identifier is not of the form <type>:<localid>."""

    def __init__(self, object_id: str, reason: str):
        self.object_id = object_id
        self.reason = reason
        super().__init__(f"Invalid object identifier '{object_id}': {reason}")


class FetchError(ExportToolError):
    """Object or datastream could not be retrieved from the repository."""
    pass


class DuplicateIdError(ExportToolError):
    """Seed listing contains identifiers already present in the ledger."""

    def __init__(self, duplicates):
        self.duplicates = sorted(duplicates)
        preview = ', '.join(self.duplicates[:10])
        if len(self.duplicates) > 10:
            preview += f", ... ({len(self.duplicates)} total)"
        super().__init__(f"Duplicate object identifiers: {preview}")


__all__ = [
    'ExportToolError',
    'ConfigError',
    'RepositoryConnectionError',
    'InvalidIdentifierError',
    'FetchError',
    'DuplicateIdError'
]
