"""Drop malformed records from the name files and report dataset metadata."""

from __future__ import annotations

import argparse
import logging

from namenet.data import clean_name_files, longest_name


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Clean yobYYYY.txt name files in place")
    parser.add_argument("--names-dir", type=str, default="./names/")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    dropped = clean_name_files(args.names_dir)
    print(f"Dropped {dropped} invalid lines")
    print(f"Longest name: {longest_name(args.names_dir)}")


if __name__ == "__main__":
    main()
