"""
Custom exceptions for the GeoCluster application.
"""


class GeoClusterError(Exception):
    """Base exception for all GeoCluster errors."""
    pass


class InputError(GeoClusterError):
    """Raised when the input source is unreadable or malformed."""
    pass


class EmptyInputError(InputError):
    """Raised when the input contains no data rows."""
    pass


class OutputError(GeoClusterError):
    """Raised when results cannot be written."""
    pass


class ClusteringError(GeoClusterError):
    """Raised when clustering operations fail."""
    pass
