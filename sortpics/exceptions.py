"""
Custom exception hierarchy for sortpics.

Only DestinationError is fatal to a run; everything else is handled
per file by the driver.
"""


class SortPicsError(Exception):
    """Base exception for all sortpics errors."""
    pass


class MetadataExtractionError(SortPicsError):
    """Raised when tags cannot be read from a file."""
    pass


class MetadataWriteError(SortPicsError):
    """Raised when rewritten tags cannot be stored in a file."""
    pass


class FileOperationError(SortPicsError):
    """Raised when file copy/move/swap operations fail."""
    pass


class DestinationError(SortPicsError):
    """Raised when a destination directory cannot be created or written."""
    pass


class DateDeltaError(SortPicsError, ValueError):
    """Raised when a date delta expression cannot be parsed."""
    pass
