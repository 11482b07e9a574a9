"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class ArchiveDlError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(ArchiveDlError):
    """Raised for issues related to configuration loading or validation."""


class IdentifierError(ArchiveDlError):
    """Raised when no item identifier was given on the command line."""


class DestinationError(ArchiveDlError):
    """Raised when the destination directory is missing or not a directory."""


class MetadataError(ArchiveDlError):
    """
    Raised when the metadata endpoint cannot be reached or does not return a
    usable file manifest.
    """


class TransferError(ArchiveDlError):
    """Raised when a single file transfer fails."""
