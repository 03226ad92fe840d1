#!/usr/bin/env python3
"""
Vault Certificate Storage operator CLI.

Inspect and repair the records a TLS server keeps in Vault: list keys, dump a
certificate, clear a lock left behind by a crashed instance.

Usage:
    python -m libs.vault_storage list certificates --recursive
    python -m libs.vault_storage get certificates/acme/example.com/example.com.crt
    python -m libs.vault_storage put acme/account.json --file account.json
    python -m libs.vault_storage stat acme/account.json
    python -m libs.vault_storage unlock certificates/example.com

Connection settings come from --address/--token/--store, falling back to
VAULT_ADDR, VAULT_TOKEN and VAULT_STORAGE_PREFIX.

Exit codes:
    0 success, 1 key not found (or "exists" answered false), 2 other errors
"""

import argparse
import json
import sys
from pathlib import Path
from typing import BinaryIO, TextIO

from libs.common.logging import configure_logging
from libs.vault_storage.context import OperationContext
from libs.vault_storage.exceptions import KeyNotFoundError, StorageError
from libs.vault_storage.factory import create_vault_storage
from libs.vault_storage.interface import CertificateStorage

EXIT_OK = 0
EXIT_NOT_FOUND = 1
EXIT_ERROR = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vault-storage",
        description="Inspect certificate storage kept in a Vault KV v2 engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Everything stored under the mount
  %(prog)s list "" --recursive

  # Release a lock left behind by a crashed server
  %(prog)s unlock certificates/example.com
        """,
    )
    parser.add_argument("--address", help="Vault address (default: $VAULT_ADDR)")
    parser.add_argument("--token", help="Vault token (default: $VAULT_TOKEN)")
    parser.add_argument("--store", help="KV v2 mount path (default: caddycerts)")
    parser.add_argument("--timeout", type=float, help="Deadline for the whole command in seconds")
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level for JSON logs on stderr",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    list_parser = subparsers.add_parser("list", help="List keys under a prefix")
    list_parser.add_argument("prefix", nargs="?", default="", help="Key prefix")
    list_parser.add_argument("--recursive", action="store_true", help="Walk the whole sub-tree")

    get_parser = subparsers.add_parser("get", help="Write a key's payload to stdout")
    get_parser.add_argument("key")

    put_parser = subparsers.add_parser("put", help="Store a payload (stdin by default)")
    put_parser.add_argument("key")
    put_parser.add_argument("--file", type=Path, help="Read the payload from this file")

    for name, help_text in (
        ("stat", "Show size, modification time and terminal flag"),
        ("exists", "Exit 0 if the key exists, 1 otherwise"),
        ("delete", "Destroy a key and all of its versions"),
        ("lock", "Acquire the advisory lock for a key"),
        ("unlock", "Release the advisory lock for a key"),
    ):
        command_parser = subparsers.add_parser(name, help=help_text)
        command_parser.add_argument("key")

    return parser


def run_command(
    storage: CertificateStorage,
    args: argparse.Namespace,
    stdin: BinaryIO,
    stdout: TextIO,
) -> int:
    """Execute one parsed command against storage and return the exit code."""
    ctx = OperationContext(timeout=args.timeout) if args.timeout else None

    if args.command == "list":
        for key in storage.list(args.prefix, recursive=args.recursive, ctx=ctx):
            print(key, file=stdout)
    elif args.command == "get":
        stdout.write(storage.load(args.key, ctx=ctx).decode("utf-8"))
        stdout.flush()
    elif args.command == "put":
        value = args.file.read_bytes() if args.file else stdin.read()
        storage.store(args.key, value, ctx=ctx)
    elif args.command == "stat":
        info = storage.stat(args.key, ctx=ctx)
        print(
            json.dumps(
                {
                    "key": info.key,
                    "is_terminal": info.is_terminal,
                    "size": info.size,
                    "modified": info.modified.isoformat() if info.modified else None,
                }
            ),
            file=stdout,
        )
    elif args.command == "exists":
        found = storage.exists(args.key, ctx=ctx)
        print("true" if found else "false", file=stdout)
        return EXIT_OK if found else EXIT_NOT_FOUND
    elif args.command == "delete":
        storage.delete(args.key, ctx=ctx)
    elif args.command == "lock":
        storage.lock(args.key, ctx=ctx)
    elif args.command == "unlock":
        storage.unlock(args.key, ctx=ctx)
    return EXIT_OK


def main(
    argv: list[str] | None = None,
    stdin: BinaryIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    err = stderr or sys.stderr

    if not args.command:
        parser.print_help(err)
        return EXIT_ERROR

    configure_logging(service_name="vault_storage", log_level=args.log_level, stream=err)

    block = {
        directive: value
        for directive, value in (
            ("address", args.address),
            ("store", args.store),
            ("token", args.token),
        )
        if value
    }

    try:
        with create_vault_storage(block) as storage:
            return run_command(storage, args, stdin or sys.stdin.buffer, stdout or sys.stdout)
    except KeyNotFoundError as e:
        print(f"Not found: {e}", file=err)
        return EXIT_NOT_FOUND
    except StorageError as e:
        print(f"Error: {e}", file=err)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
