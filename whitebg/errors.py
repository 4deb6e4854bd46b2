"""
Error types for the background whitening pipeline.

Everything raised on purpose derives from BackgroundRemovalError so the CLI
(or any other caller) can report a failed run with a single except clause.
"""


class BackgroundRemovalError(Exception):
    """Base class for every failure raised by whitebg."""
    pass


class InvalidImageError(BackgroundRemovalError):
    """Raised when a pixel buffer is missing, read-only or mis-shaped."""
    pass


class AllocationError(BackgroundRemovalError):
    """Raised when a per-run scratch array (visitation map, snapshot) cannot be allocated."""
    pass


class QueueUnderflowError(BackgroundRemovalError):
    """Raised when dequeuing from an empty traversal queue."""
    pass


class ImageDecodeError(BackgroundRemovalError):
    """Raised when an image file or byte string cannot be decoded."""
    pass


class ImageEncodeError(BackgroundRemovalError):
    """Raised when a pixel buffer cannot be written back to an image format."""
    pass
