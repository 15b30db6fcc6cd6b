"""Rule document loader: inclusion resolution, errors, and change snapshots."""

from rulepack.loader.config import LoaderConfig, load_loader_config
from rulepack.loader.errors import CycleError, MissingDocumentError, RuleLoadError
from rulepack.loader.index import RulesIndex, diff_snapshots, to_snapshot
from rulepack.loader.models import (
    ChangeType,
    DocumentChange,
    RuleDocument,
    RuleEntry,
    RuleReference,
    RuleSet,
    RulesSnapshot,
)
from rulepack.loader.resolver import (
    RuleLoader,
    expand,
    get_default_loader,
    load_rule_set,
    reset_default_loader,
    scan_references,
)

__all__ = [
    "ChangeType",
    "CycleError",
    "DocumentChange",
    "LoaderConfig",
    "MissingDocumentError",
    "RuleDocument",
    "RuleEntry",
    "RuleLoadError",
    "RuleLoader",
    "RuleReference",
    "RuleSet",
    "RulesIndex",
    "RulesSnapshot",
    "diff_snapshots",
    "expand",
    "get_default_loader",
    "load_loader_config",
    "load_rule_set",
    "reset_default_loader",
    "scan_references",
    "to_snapshot",
]
