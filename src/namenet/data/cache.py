"""Training/dev split of the name records and its JSON cache."""
from __future__ import annotations

from enum import Enum
import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

import torch

from ..errors import DatasetError
from .names import Entry, Gender, read_name_files

logger = logging.getLogger(__name__)

TRAINING_FILE = "training.json"
DEV_FILE = "dev.json"


class Mode(Enum):
    TRAINING = "training"
    DEV = "dev"


def _shuffled(entries: Sequence[Entry], generator: Optional[torch.Generator]) -> List[Entry]:
    order = torch.randperm(len(entries), generator=generator).tolist()
    return [entries[index] for index in order]


def dev_size(total: int) -> int:
    """One percent of the records, plus one."""

    return total // 100 + 1


def split_entries(
    entries: Sequence[Entry],
    *,
    generator: Optional[torch.Generator] = None,
) -> Tuple[List[Entry], List[Entry]]:
    """Shuffle ``entries`` and return ``(training, dev)``."""

    if not entries:
        raise DatasetError("cannot split an empty dataset")
    shuffled = _shuffled(entries, generator)
    count = min(dev_size(len(shuffled)), len(shuffled))
    return shuffled[count:], shuffled[:count]


def _to_json(entry: Entry) -> dict:
    return {
        "name": entry.name,
        "year": entry.year,
        "gender": entry.gender.name.capitalize(),
        "popularity": entry.popularity,
    }


def _from_json(record: dict) -> Entry:
    try:
        return Entry(
            name=str(record["name"]),
            year=int(record["year"]),
            gender=Gender[str(record["gender"]).upper()],
            popularity=int(record["popularity"]),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise DatasetError(f"malformed cached record {record!r}") from exc


def write_cache(cache_dir: str | Path, training: Sequence[Entry], dev: Sequence[Entry]) -> None:
    """Write both splits as JSON arrays. Existing cache files are never overwritten."""

    cache_dir = Path(cache_dir)
    cache_dir.mkdir(parents=True, exist_ok=True)
    for file_name, entries in ((TRAINING_FILE, training), (DEV_FILE, dev)):
        path = cache_dir / file_name
        try:
            with path.open("x", encoding="utf-8") as handle:
                json.dump([_to_json(entry) for entry in entries], handle)
        except FileExistsError as exc:
            raise DatasetError(f"cache file already exists: {path}") from exc
    logger.info("Cached %d training and %d dev records in %s", len(training), len(dev), cache_dir)


def read_cache(cache_dir: str | Path, mode: Mode) -> Optional[List[Entry]]:
    """Return the cached split for ``mode``, or ``None`` if the cache is incomplete."""

    cache_dir = Path(cache_dir)
    training_path = cache_dir / TRAINING_FILE
    dev_path = cache_dir / DEV_FILE
    if not training_path.exists() or not dev_path.exists():
        return None
    path = training_path if mode is Mode.TRAINING else dev_path
    try:
        records = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise DatasetError(f"cannot parse cache file {path}") from exc
    return [_from_json(record) for record in records]


def load_entries(
    names_dir: str | Path,
    cache_dir: str | Path,
    mode: Mode = Mode.TRAINING,
    *,
    generator: Optional[torch.Generator] = None,
) -> List[Entry]:
    """Load one split, building the cache from the raw files on first use."""

    cached = read_cache(cache_dir, mode)
    if cached is not None:
        logger.info("Loaded %d %s records from cache", len(cached), mode.value)
        return _shuffled(cached, generator)

    entries = read_name_files(names_dir)
    if entries is None:
        raise DatasetError(f"The data to be traversed couldn't be found: {names_dir}")
    training, dev = split_entries(entries, generator=generator)
    write_cache(cache_dir, training, dev)
    return training if mode is Mode.TRAINING else dev


__all__ = [
    "DEV_FILE",
    "Mode",
    "TRAINING_FILE",
    "dev_size",
    "load_entries",
    "read_cache",
    "split_entries",
    "write_cache",
]
