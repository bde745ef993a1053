"""Dense layers and the activation functions they use."""
from __future__ import annotations

from dataclasses import dataclass
import math
from typing import Optional

import torch
from torch import Tensor

from ..errors import ConfigurationError

DTYPE = torch.float64
INIT_RANGE = 0.5
INITIALISERS = ("uniform", "xavier")


def relu(values: Tensor) -> Tensor:
    return torch.clamp(values, min=0.0)


def relu_derivative(values: Tensor) -> Tensor:
    """Return ``1`` where ``values > 0`` and ``0`` elsewhere."""

    return (values > 0.0).to(values.dtype)


def softmax(logits: Tensor) -> Tensor:
    """Numerically stable softmax over the last dimension."""

    shifted = logits - logits.max(dim=-1, keepdim=True).values
    exps = torch.exp(shifted)
    return exps / exps.sum(dim=-1, keepdim=True)


def log_softmax(logits: Tensor) -> Tensor:
    shifted = logits - logits.max(dim=-1, keepdim=True).values
    return shifted - torch.logsumexp(shifted, dim=-1, keepdim=True)


@dataclass(slots=True)
class LayerEvalResult:
    """Activations recorded for one layer during a forward pass."""

    pre_activation: Tensor
    post_activation: Tensor


class Layer:
    """A fully connected layer.

    ``weights`` has shape ``(neurons, inputs)`` so that each row holds the
    weight vector of one neuron, and ``biases`` has shape ``(neurons,)``.
    Hidden layers use ReLU; the output layer uses softmax.
    """

    def __init__(self, weights: Tensor, biases: Tensor, *, is_output: bool = False) -> None:
        weights = torch.as_tensor(weights, dtype=DTYPE)
        biases = torch.as_tensor(biases, dtype=DTYPE)
        if weights.ndim != 2:
            raise ConfigurationError("weights must have shape (neurons, inputs)")
        if biases.ndim != 1:
            raise ConfigurationError("biases must be a vector")
        if biases.numel() == 0 or weights.shape[1] == 0:
            raise ConfigurationError("a layer needs at least one neuron and one input")
        if weights.shape[0] != biases.numel():
            raise ConfigurationError(
                f"weights describe {weights.shape[0]} neurons but {biases.numel()} biases were given"
            )
        self.weights = weights.clone()
        self.biases = biases.clone()
        self.is_output = is_output

    @classmethod
    def initialise(
        cls,
        inputs: int,
        neurons: int,
        *,
        is_output: bool = False,
        generator: Optional[torch.Generator] = None,
        init: str = "uniform",
    ) -> "Layer":
        """Create a layer with randomly drawn parameters.

        ``"uniform"`` draws every weight and bias from ``U[-0.5, 0.5)``.
        ``"xavier"`` draws weights from the Glorot range and starts biases at zero.
        """

        if inputs <= 0 or neurons <= 0:
            raise ConfigurationError("inputs and neurons must be positive")
        if init == "uniform":
            weights = torch.rand(neurons, inputs, generator=generator, dtype=DTYPE) * (2 * INIT_RANGE) - INIT_RANGE
            biases = torch.rand(neurons, generator=generator, dtype=DTYPE) * (2 * INIT_RANGE) - INIT_RANGE
        elif init == "xavier":
            limit = math.sqrt(6.0 / (inputs + neurons))
            weights = (torch.rand(neurons, inputs, generator=generator, dtype=DTYPE) * 2.0 - 1.0) * limit
            biases = torch.zeros(neurons, dtype=DTYPE)
        else:
            raise ConfigurationError(f"unknown initialiser {init!r}; expected one of {INITIALISERS}")
        return cls(weights, biases, is_output=is_output)

    def neurons(self) -> int:
        return self.biases.numel()

    def inputs(self) -> int:
        return self.weights.numel() // self.neurons()

    def activate(self, pre_activation: Tensor) -> Tensor:
        if self.is_output:
            return softmax(pre_activation)
        return relu(pre_activation)

    def forward(self, inputs: Tensor) -> LayerEvalResult:
        """Apply ``W @ x + b`` and the layer's activation.

        ``inputs`` is either one vector of length :meth:`inputs` or a
        ``(batch, inputs)`` matrix.
        """

        pre_activation = inputs @ self.weights.T + self.biases
        return LayerEvalResult(pre_activation, self.activate(pre_activation))

    def load_(self, weights: Tensor, biases: Tensor) -> None:
        """Overwrite the parameters in place, keeping the layer's shape."""

        weights = torch.as_tensor(weights, dtype=DTYPE)
        biases = torch.as_tensor(biases, dtype=DTYPE)
        if weights.shape != self.weights.shape or biases.shape != self.biases.shape:
            raise ConfigurationError(
                f"expected weights {tuple(self.weights.shape)} and biases {tuple(self.biases.shape)}, "
                f"got {tuple(weights.shape)} and {tuple(biases.shape)}"
            )
        self.weights.copy_(weights)
        self.biases.copy_(biases)

    def __repr__(self) -> str:
        kind = "output" if self.is_output else "hidden"
        return f"Layer(inputs={self.inputs()}, neurons={self.neurons()}, {kind})"


__all__ = [
    "DTYPE",
    "INITIALISERS",
    "Layer",
    "LayerEvalResult",
    "log_softmax",
    "relu",
    "relu_derivative",
    "softmax",
]
