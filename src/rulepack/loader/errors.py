"""Load-time errors raised while resolving inclusion markers."""

from __future__ import annotations

from pathlib import Path


class RuleLoadError(Exception):
    """Raised when a rule document set cannot be resolved."""

    kind = "load_error"

    def to_dict(self) -> dict[str, object]:
        return {"error": self.kind, "message": str(self)}


class MissingDocumentError(RuleLoadError):
    """A marker (or the root itself) points at a file that does not exist."""

    kind = "missing_document"

    def __init__(self, missing: Path, referrer: Path | None = None, line: int | None = None) -> None:
        self.missing = missing
        self.referrer = referrer
        self.line = line
        if referrer is None:
            message = f"root document not found: {missing}"
        else:
            where = f"{referrer}:{line}" if line is not None else str(referrer)
            message = f"{where} references missing document {missing}"
        super().__init__(message)

    def to_dict(self) -> dict[str, object]:
        return {
            **super().to_dict(),
            "missing": str(self.missing),
            "referrer": str(self.referrer) if self.referrer is not None else None,
            "line": self.line,
        }


class CycleError(RuleLoadError):
    """A document transitively includes itself.

    ``cycle`` starts and ends with the same path, e.g. ``[root, a, b, root]``.
    """

    kind = "cycle"

    def __init__(self, cycle: list[Path]) -> None:
        self.cycle = cycle
        super().__init__("inclusion cycle: " + " -> ".join(str(p) for p in cycle))

    def to_dict(self) -> dict[str, object]:
        return {**super().to_dict(), "cycle": [str(p) for p in self.cycle]}
