"""Forward propagation and gradient descent for a stack of dense layers."""
from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence, Tuple

import torch
from torch import Tensor

from ..errors import ConfigurationError, DimensionError
from .layer import DTYPE, Layer, LayerEvalResult, log_softmax, relu_derivative

Gradients = List[Tuple[Tensor, Tensor]]


def check_learning_rate(value: float) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ConfigurationError(f"learning_rate must be a number, got {value!r}")
    if not (value > 0 and math.isfinite(value)):
        raise ConfigurationError(f"learning_rate must be positive and finite, got {value!r}")


def check_gradient_clip(value: Optional[float]) -> None:
    if value is None:
        return
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not (value > 0 and math.isfinite(value)):
        raise ConfigurationError(f"gradient_clip must be positive and finite when set, got {value!r}")


class Network:
    """Feedforward classifier made of ReLU hidden layers and a softmax output layer.

    The topology is fixed once constructed; only the weights and biases of
    each layer change, and only through :meth:`train_step`,
    :meth:`train_batch` or :meth:`load_state_dict`. A network is not safe to
    train from several threads: concurrent :meth:`eval` calls are fine as long
    as no training step runs on the same instance.
    """

    def __init__(
        self,
        layers: Sequence[Layer],
        *,
        learning_rate: float,
        input_size: int,
        gradient_clip: Optional[float] = None,
        initialiser: str = "uniform",
    ) -> None:
        check_learning_rate(learning_rate)
        check_gradient_clip(gradient_clip)
        if len(layers) < 2:
            raise ConfigurationError("a network needs at least one hidden layer and an output layer")
        if layers[0].inputs() != input_size:
            raise ConfigurationError(
                f"first layer expects {layers[0].inputs()} inputs but input_size is {input_size}"
            )
        for index, (current, following) in enumerate(zip(layers, layers[1:])):
            if current.neurons() != following.inputs():
                raise ConfigurationError(
                    f"layer {index} has {current.neurons()} neurons but layer {index + 1} "
                    f"expects {following.inputs()} inputs"
                )
        if any(layer.is_output for layer in layers[:-1]) or not layers[-1].is_output:
            raise ConfigurationError("only the last layer may be the output layer")
        self.learning_rate = float(learning_rate)
        self.input_size = int(input_size)
        self.gradient_clip = gradient_clip
        self.initialiser = initialiser
        self.layers: Tuple[Layer, ...] = tuple(layers)

    @property
    def output_size(self) -> int:
        return self.layers[-1].neurons()

    @property
    def hidden_sizes(self) -> Tuple[int, ...]:
        return tuple(layer.neurons() for layer in self.layers[:-1])

    # ------------------------------------------------------------------
    # Forward pass
    # ------------------------------------------------------------------
    def _as_batch(self, values, size: int, name: str) -> Tensor:
        tensor = torch.as_tensor(values, dtype=DTYPE)
        if tensor.ndim == 1:
            tensor = tensor.unsqueeze(0)
        if tensor.ndim != 2 or tensor.shape[1] != size:
            raise DimensionError(f"{name} must have length {size}, got shape {tuple(tensor.shape)}")
        if tensor.shape[0] == 0:
            raise DimensionError(f"{name} must contain at least one example")
        return tensor

    def forward_prop(self, inputs: Tensor) -> List[LayerEvalResult]:
        """Run every layer in order and keep the activations of each one."""

        running = inputs
        results: List[LayerEvalResult] = []
        for layer in self.layers:
            result = layer.forward(running)
            results.append(result)
            running = result.post_activation
        return results

    def eval(self, inputs) -> Tensor:
        """Return the class distribution for a single input vector."""

        batch = self._as_batch(inputs, self.input_size, "input")
        if batch.shape[0] != 1:
            raise DimensionError("eval takes a single input vector; use eval_batch for matrices")
        return self.forward_prop(batch)[-1].post_activation[0].clone()

    def eval_batch(self, inputs) -> Tensor:
        batch = self._as_batch(inputs, self.input_size, "inputs")
        return self.forward_prop(batch)[-1].post_activation.clone()

    def predict(self, inputs) -> int:
        return int(torch.argmax(self.eval(inputs)).item())

    def loss(self, inputs, targets) -> float:
        """Mean categorical cross-entropy without updating any parameter."""

        batch, target_batch = self._validate(inputs, targets)
        logits = self.forward_prop(batch)[-1].pre_activation
        return self._cross_entropy(logits, target_batch)

    # ------------------------------------------------------------------
    # Backpropagation
    # ------------------------------------------------------------------
    def _validate(self, inputs, targets) -> Tuple[Tensor, Tensor]:
        batch = self._as_batch(inputs, self.input_size, "input")
        target_batch = self._as_batch(targets, self.output_size, "target")
        if batch.shape[0] != target_batch.shape[0]:
            raise DimensionError(
                f"got {batch.shape[0]} inputs but {target_batch.shape[0]} targets"
            )
        return batch, target_batch

    @staticmethod
    def _cross_entropy(logits: Tensor, targets: Tensor) -> float:
        per_example = -(targets * log_softmax(logits)).sum(dim=-1)
        return float(per_example.mean().item())

    def _backward(self, batch: Tensor, targets: Tensor) -> Tuple[float, Gradients]:
        history = self.forward_prop(batch)
        loss = self._cross_entropy(history[-1].pre_activation, targets)
        batch_size = batch.shape[0]

        # softmax + cross-entropy gradient with respect to the output pre-activation
        error = history[-1].post_activation - targets
        gradients: Gradients = []
        for index in range(len(self.layers) - 1, -1, -1):
            layer_input = history[index - 1].post_activation if index > 0 else batch
            grad_weights = error.T @ layer_input / batch_size
            grad_biases = error.sum(dim=0) / batch_size
            gradients.append((grad_weights, grad_biases))
            if index > 0:
                error = (error @ self.layers[index].weights) * relu_derivative(history[index - 1].pre_activation)
        gradients.reverse()
        return loss, gradients

    def gradients(self, inputs, targets) -> Tuple[float, Gradients]:
        """Return the loss and ``(d_weights, d_biases)`` for every layer, in layer order.

        Gradients are averaged over the batch when ``inputs`` is a matrix. No
        parameter is modified.
        """

        batch, target_batch = self._validate(inputs, targets)
        return self._backward(batch, target_batch)

    def train_batch(self, inputs, targets) -> float:
        """Apply one gradient descent step and return the loss before the update.

        Inputs and targets are validated before anything is touched; all
        gradients are computed from the current parameters before any layer
        is updated.
        """

        batch, target_batch = self._validate(inputs, targets)
        loss, gradients = self._backward(batch, target_batch)
        clip = self.gradient_clip
        for layer, (grad_weights, grad_biases) in zip(self.layers, gradients):
            if clip is not None:
                grad_weights = grad_weights.clamp(-clip, clip)
                grad_biases = grad_biases.clamp(-clip, clip)
            layer.weights.sub_(self.learning_rate * grad_weights)
            layer.biases.sub_(self.learning_rate * grad_biases)
        return loss

    def train_step(self, inputs, targets) -> float:
        """Train on one example: an input vector and a target distribution."""

        inputs_tensor = torch.as_tensor(inputs, dtype=DTYPE)
        targets_tensor = torch.as_tensor(targets, dtype=DTYPE)
        if inputs_tensor.ndim != 1 or targets_tensor.ndim != 1:
            raise DimensionError("train_step takes single vectors; use train_batch for matrices")
        return self.train_batch(inputs_tensor, targets_tensor)

    # ------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------
    def state_dict(self) -> Dict[str, List[Dict[str, Tensor]]]:
        """Weights and biases of each layer, in layer order."""

        return {
            "layers": [
                {"weights": layer.weights.clone(), "biases": layer.biases.clone()}
                for layer in self.layers
            ]
        }

    def load_state_dict(self, state: Dict[str, List[Dict[str, Tensor]]]) -> None:
        entries = state.get("layers") if isinstance(state, dict) else None
        if entries is None or len(entries) != len(self.layers):
            found = "no" if entries is None else len(entries)
            raise ConfigurationError(f"state holds {found} layers, network has {len(self.layers)}")
        staged = []
        for index, (layer, entry) in enumerate(zip(self.layers, entries)):
            try:
                weights = torch.as_tensor(entry["weights"], dtype=DTYPE)
                biases = torch.as_tensor(entry["biases"], dtype=DTYPE)
            except (KeyError, TypeError, ValueError) as exc:
                raise ConfigurationError(f"layer {index}: malformed parameters") from exc
            if weights.shape != layer.weights.shape:
                raise ConfigurationError(
                    f"layer {index}: expected weights {tuple(layer.weights.shape)}, "
                    f"got {tuple(weights.shape)}"
                )
            if biases.shape != layer.biases.shape:
                raise ConfigurationError(
                    f"layer {index}: expected biases {tuple(layer.biases.shape)}, "
                    f"got {tuple(biases.shape)}"
                )
            staged.append((weights, biases))
        for layer, (weights, biases) in zip(self.layers, staged):
            layer.load_(weights, biases)

    def __repr__(self) -> str:
        return (
            f"Network(input_size={self.input_size}, hidden={list(self.hidden_sizes)}, "
            f"output_size={self.output_size}, learning_rate={self.learning_rate})"
        )


__all__ = ["Gradients", "Network", "check_gradient_clip", "check_learning_rate"]
