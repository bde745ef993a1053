"""Training loop for name classifiers."""

from .trainer import EarlyStoppingConfig, NetworkTrainer, TrainingConfig, TrainingHistory

__all__ = ["EarlyStoppingConfig", "NetworkTrainer", "TrainingConfig", "TrainingHistory"]
