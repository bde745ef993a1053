"""Name-frequency dataset: parsing, caching and vector encoding."""

from .cache import Mode, load_entries, read_cache, split_entries, write_cache
from .encoding import (
    INPUT_CHARS,
    INPUT_SIZE,
    OUTPUT_SIZE,
    create_name_dataloaders,
    encode_entries,
    encode_entry,
    encode_name,
    encode_target,
)
from .names import Entry, Gender, clean_name_files, longest_name, read_name_files

__all__ = [
    "Entry",
    "Gender",
    "INPUT_CHARS",
    "INPUT_SIZE",
    "Mode",
    "OUTPUT_SIZE",
    "clean_name_files",
    "create_name_dataloaders",
    "encode_entries",
    "encode_entry",
    "encode_name",
    "encode_target",
    "load_entries",
    "longest_name",
    "read_cache",
    "read_name_files",
    "split_entries",
    "write_cache",
]
