"""Saving and restoring trained networks."""
from __future__ import annotations

from dataclasses import asdict
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import torch

from ..errors import ConfigurationError
from .config import NetworkConfig, build_network, network_config
from .engine import Network

logger = logging.getLogger(__name__)


def save_network(
    network: Network,
    path: str | Path,
    *,
    metadata: Optional[Dict[str, Any]] = None,
) -> None:
    """Write the network's configuration and per-layer parameters to ``path``."""

    checkpoint = {
        "config": asdict(network_config(network)),
        "state_dict": network.state_dict(),
        "metadata": dict(metadata or {}),
    }
    torch.save(checkpoint, Path(path))
    logger.info("Saved network with hidden layers %s to %s", list(network.hidden_sizes), path)


def load_network(path: str | Path) -> Network:
    """Rebuild a network saved by :func:`save_network`."""

    checkpoint = torch.load(Path(path), map_location="cpu")
    if not isinstance(checkpoint, dict) or "config" not in checkpoint or "state_dict" not in checkpoint:
        raise ConfigurationError(f"{path} is not a network checkpoint")
    try:
        config = NetworkConfig(**checkpoint["config"])
    except TypeError as exc:
        raise ConfigurationError(f"{path} holds an unreadable network configuration") from exc
    network = build_network(config)
    network.load_state_dict(checkpoint["state_dict"])
    return network


def load_metadata(path: str | Path) -> Dict[str, Any]:
    checkpoint = torch.load(Path(path), map_location="cpu")
    return dict(checkpoint.get("metadata", {}))


__all__ = ["load_metadata", "load_network", "save_network"]
