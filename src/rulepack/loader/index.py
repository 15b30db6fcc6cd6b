"""RulesIndex: snapshot a resolved rule set and report per-document changes."""

from __future__ import annotations

from pathlib import Path

from rulepack.loader.models import (
    ChangeType,
    DocumentChange,
    RuleEntry,
    RuleSet,
    RulesSnapshot,
)
from rulepack.loader.resolver import RuleLoader


class RulesIndex:
    def __init__(
        self,
        root: Path,
        *,
        base_dir: Path | None = None,
        loader: RuleLoader | None = None,
    ) -> None:
        self._root = root
        self._base_dir = base_dir
        self._loader = loader or RuleLoader()
        self._rule_set: RuleSet | None = None

    @property
    def root(self) -> Path:
        return self._root

    def rule_set(self) -> RuleSet:
        """Resolved rule set, loading it on first use."""
        if self._rule_set is None:
            self._rule_set = self._loader.load(self._root, self._base_dir)
        return self._rule_set

    def load(self) -> RulesSnapshot:
        """Load the rule set and reduce it to paths and hashes."""
        self._rule_set = self._loader.load(self._root, self._base_dir)
        return to_snapshot(self._rule_set)

    def refresh(self) -> RulesSnapshot:
        """Drop cached file contents and reload from disk."""
        self._loader.clear_cache()
        return self.load()

    def check_changes(self, previous: RulesSnapshot) -> list[DocumentChange]:
        """Compare a fresh load against ``previous``. Return one entry per changed document."""
        current = self.refresh()
        return diff_snapshots(previous, current)


def to_snapshot(rule_set: RuleSet) -> RulesSnapshot:
    return RulesSnapshot(
        root=rule_set.root,
        rules=[RuleEntry(path=d.path, content_hash=d.content_hash) for d in rule_set.documents],
        snapshot_hash=rule_set.snapshot_hash,
    )


def diff_snapshots(previous: RulesSnapshot, current: RulesSnapshot) -> list[DocumentChange]:
    changes: list[DocumentChange] = []

    prev_map = {r.path: r for r in previous.rules}
    curr_map = {r.path: r for r in current.rules}

    for path in curr_map:
        if path not in prev_map:
            changes.append(
                DocumentChange(
                    path=path,
                    change_type=ChangeType.ADDED,
                    details=f"Document '{path}' is now included",
                )
            )

    for path in prev_map:
        if path not in curr_map:
            changes.append(
                DocumentChange(
                    path=path,
                    change_type=ChangeType.REMOVED,
                    details=f"Document '{path}' is no longer included",
                )
            )

    for path in prev_map:
        if path in curr_map and prev_map[path].content_hash != curr_map[path].content_hash:
            changes.append(
                DocumentChange(
                    path=path,
                    change_type=ChangeType.MODIFIED,
                    details=f"Document '{path}' content changed",
                )
            )

    return changes
