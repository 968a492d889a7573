"""Error taxonomy for resolution and spectral deconvolution.

Fatal errors derive from ``AlphaResolveError``. Tasks convert them into an
ERROR status with a message; cancellation is reported as a status and never
raised to the caller.
"""


class AlphaResolveError(Exception):
    """Base class for all alpharesolve errors."""


class ConfigurationError(AlphaResolveError, ValueError):
    """Invalid input configuration, e.g. more than one raw data file in a list."""


class StorageError(AlphaResolveError, IOError):
    """Backing numeric storage is closed or unreadable."""


class AlgorithmWarning(UserWarning):
    """Non-fatal algorithm condition; the affected item is dropped."""
