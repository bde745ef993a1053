"""Dense feedforward network trained with plain gradient descent."""

from .checkpoint import load_network, save_network
from .config import LayerBuilder, NetworkBuilder, NetworkConfig, build_network
from .engine import Network
from .layer import Layer, LayerEvalResult, relu, relu_derivative, softmax

__all__ = [
    "Layer",
    "LayerBuilder",
    "LayerEvalResult",
    "Network",
    "NetworkBuilder",
    "NetworkConfig",
    "build_network",
    "load_network",
    "relu",
    "relu_derivative",
    "save_network",
    "softmax",
]
