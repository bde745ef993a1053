"""Exception hierarchy shared by the network engine and the dataset helpers."""
from __future__ import annotations


class NameNetError(Exception):
    """Base class for all errors raised by :mod:`namenet`."""


class ConfigurationError(NameNetError, ValueError):
    """Raised when a network is built or restored from an incomplete configuration."""


class DimensionError(NameNetError, ValueError):
    """Raised when a vector does not match the sizes declared by a network."""


class DatasetError(NameNetError):
    """Raised when the name dataset or its cache cannot be used."""


__all__ = ["NameNetError", "ConfigurationError", "DimensionError", "DatasetError"]
