#!/usr/bin/env python3
"""Small CLI to inspect and edit a storage root.

Examples:
    kstorage ls
    kstorage get current_user
    kstorage put images/avatar ./avatar.jpg
    kstorage --root /tmp/Storage cat primary_image > out.jpg
"""
from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Iterable, Optional

import yaml

from kstorage_lib.config import load_settings
from kstorage_lib.data_storage import DataStorage
from kstorage_lib.logging_config import configure_logging
from kstorage_lib.storage.errors import NotFoundError, StorageError
from kstorage_lib.storage.serializer import get_serializer

EXIT_NOT_FOUND = 2
EXIT_FAILURE = 3


def get_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="kstorage", description="Inspect a KStorage storage root")
    p.add_argument("--root", help="Storage root to use instead of the configured one")
    p.add_argument("--config", help="Path to the YAML settings file")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("ls", help="List stored keys")

    get = sub.add_parser("get", help="Decode a stored value and print it as YAML")
    get.add_argument("key")

    cat = sub.add_parser("cat", help="Write a stored blob to stdout")
    cat.add_argument("key")

    put = sub.add_parser("put", help="Store the contents of a file as a blob")
    put.add_argument("key")
    put.add_argument("file", help="File whose bytes are stored")

    rm = sub.add_parser("rm", help="Delete a stored key")
    rm.add_argument("key")
    return p


def open_storage(args: argparse.Namespace) -> DataStorage:
    settings = load_settings(Path(args.config) if args.config else None)
    root = Path(args.root) if args.root else settings.storage_root
    return DataStorage(root, serializer=get_serializer(settings.serializer))


def run(args: argparse.Namespace, storage: DataStorage) -> int:
    if args.command == "ls":
        for key in storage.keys():
            print(key)
        return 0

    if args.command == "get":
        value = storage.retrieve(args.key, strict=True)
        sys.stdout.write(yaml.safe_dump(value, sort_keys=False, allow_unicode=True))
        return 0

    if args.command == "cat":
        data = storage.fetch_blob(args.key)
        if data is None:
            print(f"Error: no stored value for key '{args.key}'", file=sys.stderr)
            return EXIT_NOT_FOUND
        sys.stdout.buffer.write(data)
        sys.stdout.buffer.flush()
        return 0

    if args.command == "put":
        src = Path(args.file)
        try:
            data = src.read_bytes()
        except OSError as exc:
            print(f"Error: cannot read '{src}': {exc}", file=sys.stderr)
            return EXIT_FAILURE
        print(storage.save_blob(data, args.key))
        return 0

    if args.command == "rm":
        storage.delete(args.key)
        return 0

    raise ValueError(f"unknown command {args.command!r}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = get_parser().parse_args(list(argv) if argv is not None else None)
    configure_logging(Path(args.config) if args.config else None)
    try:
        storage = open_storage(args)
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    with storage:
        try:
            return run(args, storage)
        except NotFoundError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_NOT_FOUND
        except StorageError as exc:
            print(f"Error: {exc}", file=sys.stderr)
            return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
