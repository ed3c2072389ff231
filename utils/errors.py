"""
Defines custom exception classes for the application.
"""

class AIReviewException(Exception):
    """Base exception class for aireview application."""
    pass

class ConfigError(AIReviewException):
    """Raised when there is a configuration error (bad review type, unknown strategy, missing backend...)."""
    pass

class RepositoryAccessError(AIReviewException):
    """Raised when the repository status cannot be read. Aborts the whole run."""
    pass

class PathTraversalError(AIReviewException):
    """Raised when a candidate path resolves outside the trusted base directory."""
    pass

class FileAccessError(AIReviewException):
    """Raised when a file is missing, unreadable or too large at the filesystem layer."""
    pass

class BackendError(AIReviewException):
    """Raised when an error occurs with an external review backend."""
    pass

class ReporterError(AIReviewException):
    """Raised when an error occurs while rendering a review report."""
    pass
