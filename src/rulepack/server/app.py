"""Starlette app factory with lifespan for the rules index."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from starlette.applications import Starlette

from rulepack.config import default_config_path, load_config
from rulepack.loader.config import load_loader_config
from rulepack.loader.index import RulesIndex
from rulepack.loader.resolver import RuleLoader
from rulepack.server.routes_rules import routes as rules_routes
from rulepack.server.routes_system import routes as system_routes


def create_app(
    root: Path | None = None,
    base_dir: Path | None = None,
) -> Starlette:
    """Create a Starlette app serving the rule set reachable from ``root``."""

    @asynccontextmanager
    async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
        config_path = default_config_path()
        config = load_config(config_path)
        loader_config = load_loader_config(config_path)

        resolved_root = root or (Path.cwd() / config.root_path)
        app.state.rules_index = RulesIndex(
            resolved_root,
            base_dir=base_dir or config.base_path,
            loader=RuleLoader(skip_code_fences=loader_config.skip_code_fences),
        )

        yield

    app = Starlette(
        routes=system_routes + rules_routes,
        lifespan=lifespan,
    )
    return app
