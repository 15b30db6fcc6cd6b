"""CLI entry point for rulepack."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import cast

from rulepack import __version__
from rulepack.config import default_config_path, load_config
from rulepack.loader.config import load_loader_config
from rulepack.loader.errors import RuleLoadError
from rulepack.loader.index import diff_snapshots, to_snapshot
from rulepack.loader.models import RuleSet, RulesSnapshot
from rulepack.loader.resolver import RuleLoader


def _load(args: argparse.Namespace) -> RuleSet:
    config_path = default_config_path()
    config = load_config(config_path)
    loader_config = load_loader_config(config_path)

    root = cast(Path | None, args.root) or config.root_path
    base_dir = cast(Path | None, args.base_dir) or config.base_path
    loader = RuleLoader(skip_code_fences=loader_config.skip_code_fences)
    try:
        return loader.load(root, base_dir)
    except RuleLoadError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_expand(args: argparse.Namespace) -> None:
    rule_set = _load(args)
    if args.json:
        print(json.dumps(rule_set.model_dump(), indent=2))
    else:
        sys.stdout.write(rule_set.expanded)


def _cmd_list(args: argparse.Namespace) -> None:
    rule_set = _load(args)
    print(f"Root: {rule_set.root}")
    print(f"Base dir: {rule_set.base_dir}")
    print(f"Documents: {len(rule_set.documents)}")
    for i, doc in enumerate(rule_set.documents, 1):
        refs = len(doc.references)
        print(f"  {i}. {doc.path} | {doc.content_hash[:12]} | {refs} include(s)")


def _cmd_snapshot(args: argparse.Namespace) -> None:
    rule_set = _load(args)
    print(to_snapshot(rule_set).model_dump_json(indent=2))


def _cmd_diff(args: argparse.Namespace) -> None:
    snapshot_file = cast(Path, args.snapshot)
    if not snapshot_file.exists():
        print(f"Error: file not found: {snapshot_file}", file=sys.stderr)
        sys.exit(1)
    try:
        previous = RulesSnapshot.model_validate_json(snapshot_file.read_text())
    except ValueError as e:
        print(f"Error: invalid snapshot {snapshot_file}: {e}", file=sys.stderr)
        sys.exit(1)

    changes = diff_snapshots(previous, to_snapshot(_load(args)))
    if not changes:
        print("No changes.")
        return
    for change in changes:
        print(f"  {change.change_type}: {change.path}")
    sys.exit(1)


def _cmd_serve(_args: argparse.Namespace) -> None:
    from rulepack.server.runner import ServerAlreadyRunningError, run_server

    try:
        run_server()
    except ServerAlreadyRunningError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _cmd_mcp_serve(_args: argparse.Namespace) -> None:
    from rulepack.mcp_server.server import main as mcp_main

    mcp_main()


def _add_root_args(parser: argparse.ArgumentParser) -> None:
    _ = parser.add_argument(
        "root",
        nargs="?",
        type=Path,
        default=None,
        help="Root document (default: configured root, CLAUDE.md)",
    )
    _ = parser.add_argument(
        "--base-dir",
        type=Path,
        default=None,
        dest="base_dir",
        help="Directory @path markers resolve against (default: root's directory)",
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="rulepack",
        description="Resolve @path includes in security guideline documents",
    )
    _ = parser.add_argument(
        "-V", "--version", action="version", version=f"rulepack {__version__}"
    )
    _ = parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    expand_p = subparsers.add_parser("expand", help="Print the fully expanded root document")
    _add_root_args(expand_p)
    _ = expand_p.add_argument(
        "--json", action="store_true", help="Print the whole rule set as JSON"
    )

    list_p = subparsers.add_parser("list", help="List documents in discovery order")
    _add_root_args(list_p)

    snapshot_p = subparsers.add_parser("snapshot", help="Print a JSON snapshot of content hashes")
    _add_root_args(snapshot_p)

    diff_p = subparsers.add_parser("diff", help="Compare documents against a saved snapshot")
    _ = diff_p.add_argument("snapshot", type=Path, help="Snapshot JSON from `rulepack snapshot`")
    _add_root_args(diff_p)

    _ = subparsers.add_parser("serve", help="Start the HTTP API server")
    _ = subparsers.add_parser("mcp-serve", help="Start the MCP stdio server")

    args = parser.parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    dispatch = {
        "expand": _cmd_expand,
        "list": _cmd_list,
        "snapshot": _cmd_snapshot,
        "diff": _cmd_diff,
        "serve": _cmd_serve,
        "mcp-serve": _cmd_mcp_serve,
    }
    command = cast(str | None, args.command)
    handler = dispatch.get(command) if command is not None else None
    if handler:
        handler(args)
    else:
        parser.print_help()
        sys.exit(1)
