"""Turn name records into fixed-length feature and target vectors."""
from __future__ import annotations

import math
from pathlib import Path
from typing import Optional, Sequence, Tuple

import torch
from torch import Tensor
from torch.utils.data import DataLoader, TensorDataset

from ..errors import DatasetError
from .cache import Mode, load_entries
from .names import Entry, Gender

# this should by far be enough space for all first names we need
INPUT_CHARS = 32
# name characters, popularity, year
INPUT_SIZE = INPUT_CHARS + 1 + 1
# male, female, human text that is not a name, non-human text
OUTPUT_SIZE = 2 + 1 + 1

MALE_CLASS = 0
FEMALE_CLASS = 1
NOT_A_NAME_CLASS = 2
NOT_HUMAN_CLASS = 3

FIRST_YEAR = 1880
YEAR_SPAN = 150
POPULARITY_SCALE = math.log1p(100_000)


def encode_name(name: str) -> Tensor:
    """Map letters to ``(0, 1]`` by alphabet position; padding and other characters are ``0``."""

    features = torch.zeros(INPUT_CHARS, dtype=torch.float64)
    for index, char in enumerate(name.lower()[:INPUT_CHARS]):
        if "a" <= char <= "z":
            features[index] = (ord(char) - ord("a") + 1) / 26.0
    return features


def encode_entry(entry: Entry) -> Tensor:
    popularity = min(math.log1p(max(entry.popularity, 0)) / POPULARITY_SCALE, 1.0)
    year = (entry.year - FIRST_YEAR) / YEAR_SPAN
    extra = torch.tensor([popularity, year], dtype=torch.float64)
    return torch.cat([encode_name(entry.name), extra])


def class_of(entry: Entry) -> int:
    return MALE_CLASS if entry.gender is Gender.MALE else FEMALE_CLASS


def encode_target(label: int) -> Tensor:
    if not 0 <= label < OUTPUT_SIZE:
        raise ValueError(f"label must lie in [0, {OUTPUT_SIZE}), got {label}")
    target = torch.zeros(OUTPUT_SIZE, dtype=torch.float64)
    target[label] = 1.0
    return target


def encode_entries(entries: Sequence[Entry]) -> Tuple[Tensor, Tensor]:
    """Stack entries into ``(inputs, one_hot_targets)`` matrices."""

    if not entries:
        raise DatasetError("no entries to encode")
    inputs = torch.stack([encode_entry(entry) for entry in entries])
    targets = torch.stack([encode_target(class_of(entry)) for entry in entries])
    return inputs, targets


def create_name_dataloaders(
    names_dir: str | Path,
    cache_dir: str | Path,
    *,
    batch_size: int,
    shuffle: bool = True,
    generator: Optional[torch.Generator] = None,
) -> Tuple[DataLoader, DataLoader]:
    """Return training and dev loaders over the cached name splits."""

    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    training = load_entries(names_dir, cache_dir, Mode.TRAINING, generator=generator)
    dev = load_entries(names_dir, cache_dir, Mode.DEV, generator=generator)

    train_dataset = TensorDataset(*encode_entries(training))
    dev_dataset = TensorDataset(*encode_entries(dev))
    train_loader = DataLoader(train_dataset, batch_size=batch_size, shuffle=shuffle, generator=generator)
    dev_loader = DataLoader(dev_dataset, batch_size=batch_size, shuffle=False)
    return train_loader, dev_loader


__all__ = [
    "INPUT_CHARS",
    "INPUT_SIZE",
    "OUTPUT_SIZE",
    "class_of",
    "create_name_dataloaders",
    "encode_entries",
    "encode_entry",
    "encode_name",
    "encode_target",
]
