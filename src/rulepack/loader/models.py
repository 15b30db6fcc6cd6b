"""Pydantic models for the rule document loader."""

from __future__ import annotations

from enum import StrEnum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class ChangeType(StrEnum):
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


class RuleReference(BaseModel):
    model_config = ConfigDict(frozen=True)

    marker: str  # raw text after "@"
    path: str  # normalized absolute target path
    line: int  # 1-based line of the marker


class RuleDocument(BaseModel):
    model_config = ConfigDict(frozen=True)

    path: str
    content: str
    references: list[RuleReference] = Field(default_factory=list)
    content_hash: str = ""

    @property
    def name(self) -> str:
        return Path(self.path).name


class RuleSet(BaseModel):
    """Documents reachable from a root, in first-discovery order."""

    model_config = ConfigDict(frozen=True)

    root: str
    base_dir: str
    documents: list[RuleDocument] = Field(default_factory=list)
    expanded: str = ""
    snapshot_hash: str = ""

    def paths(self) -> list[str]:
        return [d.path for d in self.documents]

    def pairs(self) -> list[tuple[str, str]]:
        return [(d.path, d.content) for d in self.documents]

    def get(self, path: str) -> RuleDocument | None:
        for doc in self.documents:
            if doc.path == path:
                return doc
        return None


class RuleEntry(BaseModel):
    path: str
    content_hash: str


class RulesSnapshot(BaseModel):
    root: str = ""
    rules: list[RuleEntry] = Field(default_factory=list)
    snapshot_hash: str = ""


class DocumentChange(BaseModel):
    path: str
    change_type: ChangeType
    details: str = ""
