"""MCP stdio server exposing the resolved rule set as tools."""

from __future__ import annotations

import json
from pathlib import Path

import anyio
import mcp.types as types
from mcp.server import NotificationOptions, Server
from mcp.server.stdio import stdio_server

from rulepack import __version__
from rulepack.config import default_config_path, load_config
from rulepack.loader.errors import RuleLoadError
from rulepack.loader.resolver import get_default_loader, resolve_marker

_ROOT_PROPERTIES = {
    "root": {
        "type": "string",
        "description": "Root document path (default: configured root, usually CLAUDE.md)",
    },
    "base_dir": {
        "type": "string",
        "description": "Directory @path markers resolve against (default: root's directory)",
    },
}

GET_RULES_SCHEMA = {
    "type": "object",
    "properties": dict(_ROOT_PROPERTIES),
}

LIST_DOCUMENTS_SCHEMA = {
    "type": "object",
    "properties": dict(_ROOT_PROPERTIES),
}

GET_DOCUMENT_SCHEMA = {
    "type": "object",
    "properties": {
        "path": {
            "type": "string",
            "description": "Document path, relative to the base directory or absolute",
        },
        **_ROOT_PROPERTIES,
    },
    "required": ["path"],
}


def _resolve_root(args: dict) -> tuple[Path, Path | None]:
    config = load_config(default_config_path())
    root = Path(args["root"]) if args.get("root") else Path.cwd() / config.root_path
    if args.get("base_dir"):
        return root, Path(args["base_dir"])
    return root, config.base_path


def create_mcp_server() -> Server:
    """Create and configure the MCP server with 3 tool handlers."""
    server = Server("rulepack", version=__version__)

    @server.list_tools()
    async def list_tools() -> list[types.Tool]:
        return [
            types.Tool(
                name="get_rules",
                description=(
                    "Fully expanded security guidelines: the root document with every "
                    "@path include substituted."
                ),
                inputSchema=GET_RULES_SCHEMA,
            ),
            types.Tool(
                name="list_rule_documents",
                description="List guideline documents in discovery order with content hashes.",
                inputSchema=LIST_DOCUMENTS_SCHEMA,
            ),
            types.Tool(
                name="get_rule_document",
                description="Fetch the raw content of one guideline document.",
                inputSchema=GET_DOCUMENT_SCHEMA,
            ),
        ]

    @server.call_tool()
    async def call_tool(
        name: str,
        arguments: dict | None,
    ) -> list[types.TextContent]:
        args = arguments or {}
        if name not in ("get_rules", "list_rule_documents", "get_rule_document"):
            return [types.TextContent(type="text", text=f"Unknown tool: {name}")]

        root, base_dir = _resolve_root(args)
        try:
            rule_set = get_default_loader().load(root, base_dir)
        except RuleLoadError as e:
            return [types.TextContent(type="text", text=json.dumps(e.to_dict(), indent=2))]

        if name == "get_rules":
            return [types.TextContent(type="text", text=rule_set.expanded)]

        if name == "list_rule_documents":
            result: dict = {
                "root": rule_set.root,
                "documents": [
                    {"path": d.path, "content_hash": d.content_hash} for d in rule_set.documents
                ],
                "snapshot_hash": rule_set.snapshot_hash,
            }
            return [types.TextContent(type="text", text=json.dumps(result, indent=2))]

        doc = rule_set.get(str(resolve_marker(args["path"], Path(rule_set.base_dir))))
        if doc is None:
            text = json.dumps({"error": f"Document '{args['path']}' not in rule set"})
            return [types.TextContent(type="text", text=text)]
        return [types.TextContent(type="text", text=doc.content)]

    return server


async def run_mcp_server() -> None:
    """Run the MCP server with stdio transport."""
    server = create_mcp_server()
    async with stdio_server() as (read_stream, write_stream):
        init_options = server.create_initialization_options(
            notification_options=NotificationOptions(),
        )
        await server.run(read_stream, write_stream, init_options)


def main() -> None:
    anyio.run(run_mcp_server)
