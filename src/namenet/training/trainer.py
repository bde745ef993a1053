"""Epoch loop around :meth:`Network.train_batch`."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Dict, Iterable, List, Optional, Tuple

import torch
from torch import Tensor
from tqdm.auto import tqdm

from ..network import Network

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class TrainingConfig:
    """Settings of the epoch loop.

    Parameters
    ----------
    epochs:
        Maximum number of passes over the training loader.
    batch_size:
        Number of examples averaged into each gradient descent step. Used
        when building the data loaders.
    log_every:
        Log the epoch metrics every ``log_every`` epochs. The last epoch is
        always logged.
    """

    epochs: int = 1
    batch_size: int = 32
    log_every: int = 1

    def __post_init__(self) -> None:
        for name in ("epochs", "batch_size", "log_every"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer")
            if value <= 0:
                raise ValueError(f"{name} must be positive")


@dataclass(slots=True)
class EarlyStoppingConfig:
    """Stop once the monitored loss fails to improve for ``patience`` epochs."""

    patience: int = 20
    min_delta: float = 1e-4

    def __post_init__(self) -> None:
        if self.patience <= 0:
            raise ValueError("patience must be positive")
        if self.min_delta < 0:
            raise ValueError("min_delta must be non-negative")


@dataclass
class TrainingHistory:
    """Metrics collected by :meth:`NetworkTrainer.fit`, one value per epoch."""

    losses: list[float] = field(default_factory=list)
    val_losses: list[float] = field(default_factory=list)
    val_accuracy: list[float] = field(default_factory=list)


class NetworkTrainer:
    """Feed batches of ``(inputs, one_hot_targets)`` to a network."""

    def __init__(
        self,
        network: Network,
        *,
        train_loader: Iterable[Tuple[Tensor, Tensor]],
        val_loader: Optional[Iterable[Tuple[Tensor, Tensor]]] = None,
        progress: bool = True,
    ) -> None:
        self.network = network
        self.train_loader = train_loader
        self.val_loader = val_loader
        self.progress = progress
        self.step = 0
        self.epoch = 0

    def train_step(self, batch: Tuple[Tensor, Tensor]) -> Dict[str, float]:
        """Execute a single gradient descent step."""

        inputs, targets = batch
        loss = self.network.train_batch(inputs, targets)
        self.step += 1
        return {"loss": loss}

    def evaluate(self) -> Dict[str, float]:
        """Mean loss and accuracy over the validation loader."""

        if self.val_loader is None:
            return {}
        total_loss = 0.0
        correct = 0
        total = 0
        for inputs, targets in self.val_loader:
            count = int(inputs.shape[0])
            total_loss += self.network.loss(inputs, targets) * count
            predictions = torch.argmax(self.network.eval_batch(inputs), dim=-1)
            correct += int((predictions == torch.argmax(targets, dim=-1)).sum().item())
            total += count
        if total == 0:
            return {}
        return {"val/loss": total_loss / total, "val/accuracy": correct / total}

    def train_epoch(self) -> Dict[str, float]:
        """Iterate once over the training loader and report the mean loss."""

        losses: List[float] = []
        iterator = self.train_loader
        if self.progress:
            iterator = tqdm(iterator, desc=f"Epoch {self.epoch + 1}", leave=False)
        for batch in iterator:
            losses.append(self.train_step(batch)["loss"])
        if not losses:
            return {}
        return {"loss": sum(losses) / len(losses)}

    def fit(
        self,
        config: TrainingConfig,
        *,
        early_stopping: Optional[EarlyStoppingConfig] = None,
    ) -> TrainingHistory:
        """Train for up to ``config.epochs`` epochs.

        With ``early_stopping`` the validation loss is monitored, or the
        training loss when there is no validation loader.
        """

        epochs = config.epochs
        history = TrainingHistory()
        best_loss = float("inf")
        epochs_without_improvement = 0

        for epoch in range(epochs):
            self.epoch = epoch
            metrics = self.train_epoch()
            if not metrics:
                raise ValueError("the training loader produced no batches")
            history.losses.append(metrics["loss"])
            val_metrics = self.evaluate()
            if val_metrics:
                history.val_losses.append(val_metrics["val/loss"])
                history.val_accuracy.append(val_metrics["val/accuracy"])
            if (epoch + 1) % config.log_every == 0 or epoch + 1 == epochs:
                logger.info("Epoch %d/%d: %s %s", epoch + 1, epochs, metrics, val_metrics)

            if early_stopping is not None:
                monitored = val_metrics.get("val/loss", metrics["loss"])
                if monitored + early_stopping.min_delta < best_loss:
                    best_loss = monitored
                    epochs_without_improvement = 0
                else:
                    epochs_without_improvement += 1
                    if epochs_without_improvement >= early_stopping.patience:
                        logger.info("Stopping early after epoch %d", epoch + 1)
                        break
        return history


__all__ = ["EarlyStoppingConfig", "NetworkTrainer", "TrainingConfig", "TrainingHistory"]
