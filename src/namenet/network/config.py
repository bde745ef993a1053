"""Builders that validate a network's structure before it is constructed."""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Optional, Tuple

import torch

from ..errors import ConfigurationError
from .engine import Network, check_gradient_clip, check_learning_rate
from .layer import INITIALISERS, Layer


def _check_size(value: int, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if value <= 0:
        raise ConfigurationError(f"{name} must be positive, got {value}")


@dataclass(slots=True)
class NetworkConfig:
    """Plain description of a network, as stored in checkpoints.

    Parameters
    ----------
    learning_rate:
        Step size of every gradient descent update. Must be positive.
    input_size:
        Length of the feature vectors fed to the network.
    output_size:
        Number of classes predicted by the softmax output layer.
    hidden_layers:
        Neuron count of each hidden layer, first to last. At least one
        hidden layer is required.
    initialiser:
        ``"uniform"`` draws parameters from ``U[-0.5, 0.5)``; ``"xavier"``
        scales the weight range by fan-in and fan-out.
    gradient_clip:
        Optional bound on the absolute value of every gradient entry.
    """

    learning_rate: float
    input_size: int
    output_size: int
    hidden_layers: Tuple[int, ...]
    initialiser: str = "uniform"
    gradient_clip: Optional[float] = None

    def __post_init__(self) -> None:
        check_learning_rate(self.learning_rate)
        _check_size(self.input_size, "input_size")
        _check_size(self.output_size, "output_size")
        self.hidden_layers = tuple(self.hidden_layers)
        if not self.hidden_layers:
            raise ConfigurationError("there has to be at least one hidden layer")
        for neurons in self.hidden_layers:
            _check_size(neurons, "hidden layer neuron count")
        if self.initialiser not in INITIALISERS:
            raise ConfigurationError(f"initialiser must be one of {INITIALISERS}")
        check_gradient_clip(self.gradient_clip)


@dataclass(frozen=True, slots=True)
class LayerBuilder:
    """Settings of one hidden layer."""

    neuron_count: Optional[int] = None

    def neurons(self, neurons: int) -> "LayerBuilder":
        return replace(self, neuron_count=neurons)


@dataclass(frozen=True, slots=True)
class NetworkBuilder:
    """Collects a network's settings through chained calls.

    Each call returns a new builder; nothing is checked until :meth:`build`.

    >>> network = (
    ...     NetworkBuilder()
    ...     .learning_rate(0.05)
    ...     .input_size(34)
    ...     .output_size(4)
    ...     .hidden(LayerBuilder().neurons(10))
    ...     .build()
    ... )
    """

    rate: Optional[float] = None
    inputs: Optional[int] = None
    outputs: Optional[int] = None
    hidden_layers: Tuple[LayerBuilder, ...] = field(default_factory=tuple)
    init_scheme: str = "uniform"
    clip: Optional[float] = None

    def learning_rate(self, learning_rate: float) -> "NetworkBuilder":
        return replace(self, rate=learning_rate)

    def input_size(self, input_size: int) -> "NetworkBuilder":
        return replace(self, inputs=input_size)

    def output_size(self, output_size: int) -> "NetworkBuilder":
        return replace(self, outputs=output_size)

    def hidden(self, layer: LayerBuilder) -> "NetworkBuilder":
        return replace(self, hidden_layers=self.hidden_layers + (layer,))

    def initialiser(self, name: str) -> "NetworkBuilder":
        return replace(self, init_scheme=name)

    def gradient_clip(self, value: Optional[float]) -> "NetworkBuilder":
        return replace(self, clip=value)

    @classmethod
    def from_config(cls, config: NetworkConfig) -> "NetworkBuilder":
        builder = (
            cls()
            .learning_rate(config.learning_rate)
            .input_size(config.input_size)
            .output_size(config.output_size)
            .initialiser(config.initialiser)
            .gradient_clip(config.gradient_clip)
        )
        for neurons in config.hidden_layers:
            builder = builder.hidden(LayerBuilder().neurons(neurons))
        return builder

    def config(self) -> NetworkConfig:
        """Validate the collected settings."""

        if self.rate is None:
            raise ConfigurationError("there was no learning rate given")
        if self.inputs is None:
            raise ConfigurationError("there was no input size given")
        if self.outputs is None:
            raise ConfigurationError("there was no output size given")
        if any(layer.neuron_count is None for layer in self.hidden_layers):
            raise ConfigurationError("neurons need to be defined inside hidden layers")
        return NetworkConfig(
            learning_rate=self.rate,
            input_size=self.inputs,
            output_size=self.outputs,
            hidden_layers=tuple(layer.neuron_count for layer in self.hidden_layers),
            initialiser=self.init_scheme,
            gradient_clip=self.clip,
        )

    def build(self, generator: Optional[torch.Generator] = None) -> Network:
        """Construct the network, drawing its parameters from ``generator``."""

        return build_network(self.config(), generator=generator)


def build_network(config: NetworkConfig, *, generator: Optional[torch.Generator] = None) -> Network:
    layers = []
    previous = config.input_size
    for neurons in config.hidden_layers:
        layers.append(Layer.initialise(previous, neurons, generator=generator, init=config.initialiser))
        previous = neurons
    layers.append(
        Layer.initialise(
            previous,
            config.output_size,
            is_output=True,
            generator=generator,
            init=config.initialiser,
        )
    )
    return Network(
        layers,
        learning_rate=config.learning_rate,
        input_size=config.input_size,
        gradient_clip=config.gradient_clip,
        initialiser=config.initialiser,
    )


def network_config(network: Network) -> NetworkConfig:
    """Describe an existing network's topology."""

    return NetworkConfig(
        learning_rate=network.learning_rate,
        input_size=network.input_size,
        output_size=network.output_size,
        hidden_layers=network.hidden_sizes,
        initialiser=network.initialiser,
        gradient_clip=network.gradient_clip,
    )


__all__ = ["LayerBuilder", "NetworkBuilder", "NetworkConfig", "build_network", "network_config"]
