"""Readers for the yearly baby-name frequency files (``yobYYYY.txt``)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

logger = logging.getLogger(__name__)

YEAR_PREFIX_LENGTH = 3


class Gender(Enum):
    MALE = 0
    FEMALE = 1


@dataclass(slots=True)
class Entry:
    """One ``name,gender,count`` record of a given year."""

    name: str
    year: int
    gender: Gender
    popularity: int


def _name_files(directory: Path) -> Iterator[Path]:
    for path in sorted(directory.iterdir()):
        if path.is_file() and path.suffix.lower() == ".txt":
            yield path


def _lines(path: Path) -> Iterator[str]:
    content = path.read_text(encoding="utf-8").replace("\r", "")
    for line in content.split("\n"):
        if line:
            yield line


def _split_record(line: str, path: Path) -> Optional[Tuple[str, str, str]]:
    if line.count(",") != 2:
        logger.warning('Found invalid line "%s" in file "%s"', line, path)
        return None
    name, gender, count = line.split(",")
    return name, gender, count


def year_of(path: Path) -> int:
    """Parse the year out of a file name such as ``yob1998.txt``."""

    stem = path.name.split(".", 1)[0]
    try:
        return int(stem[YEAR_PREFIX_LENGTH:])
    except ValueError as exc:
        raise ValueError(f"cannot read a year from file name {path.name!r}") from exc


def read_name_files(directory: str | Path) -> Optional[List[Entry]]:
    """Read every record of every name file in ``directory``.

    Returns ``None`` when the directory does not exist. Lines that do not hold
    exactly three comma separated fields are logged and skipped.
    """

    directory = Path(directory)
    if not directory.exists():
        return None
    entries: List[Entry] = []
    for path in _name_files(directory):
        year = year_of(path)
        for line in _lines(path):
            record = _split_record(line, path)
            if record is None:
                continue
            name, gender, count = record
            try:
                popularity = int(count)
            except ValueError:
                logger.warning('Found invalid line "%s" in file "%s"', line, path)
                continue
            entries.append(
                Entry(
                    name=name,
                    year=year,
                    gender=Gender.MALE if gender == "M" else Gender.FEMALE,
                    popularity=popularity,
                )
            )
    logger.info("Read %d name records from %s", len(entries), directory)
    return entries


def longest_name(directory: str | Path) -> int:
    """Length of the longest name found in the raw files."""

    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Name data not found: {directory}")
    longest = 0
    for path in _name_files(directory):
        for line in _lines(path):
            record = _split_record(line, path)
            if record is not None:
                longest = max(longest, len(record[0]))
    return longest


def _is_valid_record(name: str, gender: str, count: str) -> bool:
    return name.isascii() and name.isalpha() and gender.isascii() and gender.isalpha() and count.isdigit()


def clean_name_files(directory: str | Path) -> int:
    """Rewrite the name files in place, dropping malformed records.

    A record is kept when its name and gender are ASCII letters and its count
    is a decimal number. Returns the number of dropped lines.
    """

    directory = Path(directory)
    if not directory.exists():
        raise FileNotFoundError(f"Name data not found: {directory}")
    dropped = 0
    for path in _name_files(directory):
        logger.info("Cleaning %s", path)
        kept: List[str] = []
        for line in _lines(path):
            record = _split_record(line, path)
            if record is None:
                dropped += 1
                continue
            if not _is_valid_record(*record):
                logger.warning('Found invalid line "%s" in file "%s"', line, path)
                dropped += 1
                continue
            kept.append(line)
        path.write_text("\n".join(kept), encoding="utf-8")
    return dropped


__all__ = [
    "Entry",
    "Gender",
    "clean_name_files",
    "longest_name",
    "read_name_files",
    "year_of",
]
