"""Rules routes: list resolved documents, expanded text, change checks."""

from __future__ import annotations

from pathlib import Path

from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from rulepack.loader.errors import RuleLoadError
from rulepack.loader.models import RulesSnapshot
from rulepack.loader.resolver import resolve_marker


def _load_error(e: RuleLoadError) -> JSONResponse:
    return JSONResponse(e.to_dict(), status_code=422)


async def list_rules(request: Request) -> JSONResponse:
    """GET /api/rules: documents reachable from the root, in discovery order."""
    index = request.app.state.rules_index
    try:
        index.load()
        rule_set = index.rule_set()
    except RuleLoadError as e:
        return _load_error(e)
    return JSONResponse(
        {
            "root": rule_set.root,
            "rules": [
                {
                    "path": d.path,
                    "content_hash": d.content_hash,
                    "references": [r.model_dump() for r in d.references],
                }
                for d in rule_set.documents
            ],
            "count": len(rule_set.documents),
            "snapshot_hash": rule_set.snapshot_hash,
        }
    )


async def expanded_rules(request: Request) -> JSONResponse:
    """GET /api/rules/expanded: root document with every marker substituted."""
    index = request.app.state.rules_index
    try:
        rule_set = index.rule_set()
    except RuleLoadError as e:
        return _load_error(e)
    return JSONResponse(
        {
            "root": rule_set.root,
            "text": rule_set.expanded,
            "snapshot_hash": rule_set.snapshot_hash,
        }
    )


async def get_document(request: Request) -> JSONResponse:
    """GET /api/rules/document?path=...: one document from the resolved set."""
    path = request.query_params.get("path", "")
    if not path:
        return JSONResponse({"error": "path query parameter required"}, status_code=400)
    index = request.app.state.rules_index
    try:
        rule_set = index.rule_set()
    except RuleLoadError as e:
        return _load_error(e)
    doc = rule_set.get(path)
    if doc is None:
        doc = rule_set.get(str(resolve_marker(path, Path(rule_set.base_dir))))
    if doc is None:
        return JSONResponse({"error": f"Document '{path}' not in rule set"}, status_code=404)
    return JSONResponse(doc.model_dump())


async def check_changes(request: Request) -> JSONResponse:
    """POST /api/rules/check-changes: compare current documents against a previous snapshot."""
    try:
        body = await request.json()
        previous = RulesSnapshot.model_validate(body)
    except Exception:
        return JSONResponse({"error": "Valid RulesSnapshot body required"}, status_code=422)

    index = request.app.state.rules_index
    try:
        changes = index.check_changes(previous)
    except RuleLoadError as e:
        return _load_error(e)
    return JSONResponse(
        {
            "unchanged": len(changes) == 0,
            "change_count": len(changes),
            "changes": [c.model_dump(mode="json") for c in changes],
        }
    )


routes = [
    Route("/api/rules", list_rules),
    Route("/api/rules/expanded", expanded_rules),
    Route("/api/rules/document", get_document),
    Route("/api/rules/check-changes", check_changes, methods=["POST"]),
]
