"""RuleLoader: resolve @path inclusion markers into a flattened RuleSet.

A marker is a line that starts with ``@`` followed by a relative path and
nothing else but trailing whitespace. Every marker resolves against one base
directory (the root document's directory unless told otherwise). Lines inside
fenced code blocks are never markers.
"""

from __future__ import annotations

import hashlib
import logging
import re
import threading
from collections.abc import Iterator
from pathlib import Path

from rulepack.loader.errors import CycleError, MissingDocumentError
from rulepack.loader.models import RuleDocument, RuleReference, RuleSet

logger = logging.getLogger(__name__)

_MARKER_RE = re.compile(r"^@(\S+)[ \t]*$")
_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_LINE_SPLIT_RE = re.compile(r"(?<=\n)")


def normalize_path(path: Path) -> Path:
    return path.expanduser().resolve()


def resolve_marker(marker: str, base_dir: Path) -> Path:
    return normalize_path(base_dir / Path(marker).expanduser())


def iter_marker_lines(
    text: str,
    *,
    skip_code_fences: bool = True,
) -> Iterator[tuple[int, str, str | None]]:
    """Yield ``(line_number, raw_line, marker)`` for every line of ``text``.

    ``marker`` is the path after ``@`` for marker lines, else None. Raw lines
    keep their line endings so joining them reproduces ``text`` exactly.
    """
    fence: str | None = None
    lines = _LINE_SPLIT_RE.split(text)
    if lines and not lines[-1]:
        lines.pop()
    for lineno, line in enumerate(lines, start=1):
        body = line.rstrip("\r\n")
        if skip_code_fences:
            m = _FENCE_RE.match(body)
            if m:
                token = m.group(1)
                if fence is None:
                    fence = token
                elif token[0] == fence[0] and len(token) >= len(fence):
                    fence = None
                yield lineno, line, None
                continue
            if fence is not None:
                yield lineno, line, None
                continue
        m = _MARKER_RE.match(body)
        yield lineno, line, (m.group(1) if m else None)


def scan_references(
    text: str,
    base_dir: Path,
    *,
    skip_code_fences: bool = True,
) -> list[RuleReference]:
    """Find inclusion markers in document order."""
    refs: list[RuleReference] = []
    for lineno, _line, marker in iter_marker_lines(text, skip_code_fences=skip_code_fences):
        if marker is None:
            continue
        refs.append(
            RuleReference(
                marker=marker,
                path=str(resolve_marker(marker, base_dir)),
                line=lineno,
            )
        )
    return refs


class RuleLoader:
    """Reads rule documents once and resolves inclusion chains.

    Raw file contents are cached by normalized path for the lifetime of the
    loader. References are rescanned per load, since they depend on the base
    directory of that load.
    """

    _skip_code_fences: bool
    _contents: dict[Path, str]

    def __init__(self, *, skip_code_fences: bool = True) -> None:
        self._skip_code_fences = skip_code_fences
        self._contents = {}
        self._lock = threading.Lock()

    def load(self, root: str | Path, base_dir: str | Path | None = None) -> RuleSet:
        """Resolve ``root`` and everything it includes.

        Raises MissingDocumentError or CycleError; nothing partial is returned.
        """
        root_path = normalize_path(Path(root))
        base = normalize_path(Path(base_dir)) if base_dir is not None else root_path.parent

        documents: dict[Path, RuleDocument] = {}
        expanded_by_path: dict[Path, str] = {}
        expanded = self._expand(
            root_path,
            base,
            documents=documents,
            expanded_by_path=expanded_by_path,
            stack=[],
        )

        docs = list(documents.values())
        snapshot_hash = _hash("".join(f"{d.path}\0{d.content_hash}\n" for d in docs))
        logger.debug(f"Loaded {len(docs)} rule documents from {root_path}")
        return RuleSet(
            root=str(root_path),
            base_dir=str(base),
            documents=docs,
            expanded=expanded,
            snapshot_hash=snapshot_hash,
        )

    def read_document(
        self,
        path: str | Path,
        base_dir: str | Path | None = None,
        *,
        referrer: Path | None = None,
        line: int | None = None,
    ) -> RuleDocument:
        """Read a single document and scan its references without following them."""
        doc_path = normalize_path(Path(path))
        base = normalize_path(Path(base_dir)) if base_dir is not None else doc_path.parent
        content = self._read(doc_path, referrer=referrer, line=line)
        return RuleDocument(
            path=str(doc_path),
            content=content,
            references=scan_references(
                content, base, skip_code_fences=self._skip_code_fences
            ),
            content_hash=_hash(content),
        )

    def clear_cache(self) -> None:
        with self._lock:
            self._contents.clear()

    def cached_paths(self) -> list[Path]:
        with self._lock:
            return list(self._contents)

    def _read(self, path: Path, *, referrer: Path | None, line: int | None) -> str:
        with self._lock:
            cached = self._contents.get(path)
        if cached is not None:
            return cached
        if not path.is_file():
            raise MissingDocumentError(path, referrer=referrer, line=line)
        # Decode bytes directly so line endings survive untranslated
        content = path.read_bytes().decode("utf-8")
        logger.debug(f"Read rule document {path} ({len(content)} chars)")
        with self._lock:
            return self._contents.setdefault(path, content)

    def _expand(
        self,
        path: Path,
        base: Path,
        *,
        documents: dict[Path, RuleDocument],
        expanded_by_path: dict[Path, str],
        stack: list[Path],
        referrer: Path | None = None,
        line: int | None = None,
    ) -> str:
        if path in stack:
            raise CycleError(stack[stack.index(path) :] + [path])
        done = expanded_by_path.get(path)
        if done is not None:
            return done

        doc = documents.get(path)
        if doc is None:
            doc = self.read_document(path, base, referrer=referrer, line=line)
            documents[path] = doc

        stack.append(path)
        refs = iter(doc.references)
        parts: list[str] = []
        for _lineno, raw, marker in iter_marker_lines(
            doc.content, skip_code_fences=self._skip_code_fences
        ):
            if marker is None:
                parts.append(raw)
                continue
            ref = next(refs)
            child = self._expand(
                Path(ref.path),
                base,
                documents=documents,
                expanded_by_path=expanded_by_path,
                stack=stack,
                referrer=path,
                line=ref.line,
            )
            parts.append(child)
            ending = raw[len(raw.rstrip("\r\n")) :]
            if ending and not child.endswith(("\n", "\r")):
                parts.append(ending)
        stack.pop()

        result = "".join(parts)
        expanded_by_path[path] = result
        return result


_default_loader: RuleLoader | None = None
_default_lock = threading.Lock()


def get_default_loader() -> RuleLoader:
    """Process-wide loader whose cache lives until restart or reset."""
    global _default_loader
    with _default_lock:
        if _default_loader is None:
            from rulepack.config import default_config_path
            from rulepack.loader.config import load_loader_config

            config = load_loader_config(default_config_path())
            _default_loader = RuleLoader(skip_code_fences=config.skip_code_fences)
        return _default_loader


def reset_default_loader() -> None:
    global _default_loader
    with _default_lock:
        _default_loader = None


def load_rule_set(root: str | Path, base_dir: str | Path | None = None) -> RuleSet:
    return get_default_loader().load(root, base_dir)


def expand(root: str | Path, base_dir: str | Path | None = None) -> str:
    """Return the fully expanded text of ``root``."""
    return load_rule_set(root, base_dir).expanded


def _hash(content: str) -> str:
    return hashlib.sha256(content.encode()).hexdigest()
