"""Name classifier built on a hand-written dense network.

The package is split into three parts:
- ``network``: layers, builders, forward propagation and backpropagation,
- ``data``: parsing, caching and encoding of the yearly name records,
- ``training``: the epoch loop used by the command line scripts.
"""

from .errors import ConfigurationError, DatasetError, DimensionError, NameNetError

__all__ = [
    "ConfigurationError",
    "DatasetError",
    "DimensionError",
    "NameNetError",
    "data",
    "network",
    "training",
]
