"""Valve KeyValues ("VDF") text parsing.

Tokenizing is done by the ``vdf`` library; this module turns its output into
read-only, case-insensitive :class:`ConfigNode` trees with an explicit policy
for keys that repeat inside one section.
"""
from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import vdf

logger = logging.getLogger(__name__)


class ParseError(ValueError):
    """Raised when KeyValues text cannot be read or is structurally broken."""

    def __init__(self, message: str, lineno: Optional[int] = None, path: Optional[Path] = None):
        super().__init__(message)
        self.message = message
        self.lineno = lineno
        self.path = path

    def __str__(self) -> str:
        where = str(self.path) if self.path else ""
        if self.lineno:
            where = f"{where}:{self.lineno}" if where else f"line {self.lineno}"
        return f"{where}: {self.message}" if where else self.message


class DuplicateKeyPolicy(enum.Enum):
    """Which assignment wins when a key repeats inside one section.

    Two sections sharing a key are always merged; the policy decides which
    side's children win on conflict.
    """

    LAST = "last"
    FIRST = "first"


def _fold_key(key: str) -> str:
    return key.casefold()


class ConfigNode(Mapping):
    """Immutable section of a parsed KeyValues document.

    Lookups ignore case (``node["Apps"]`` and ``node["apps"]`` are the same
    entry). Values are either ``str`` or a nested :class:`ConfigNode`.
    """

    __slots__ = ("_entries",)

    def __init__(self, entries: Optional[Dict[str, Tuple[str, Any]]] = None):
        # folded key -> (key as written, value)
        self._entries: Dict[str, Tuple[str, Any]] = dict(entries or {})

    def __getitem__(self, key: str) -> Any:
        if not isinstance(key, str):
            raise KeyError(key)
        return self._entries[_fold_key(key)][1]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and _fold_key(key) in self._entries

    def __iter__(self) -> Iterator[str]:
        for key, _ in self._entries.values():
            yield key

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"ConfigNode({self.to_dict()!r})"

    def get_text(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.get(key)
        return value if isinstance(value, str) else default

    def get_node(self, key: str) -> Optional["ConfigNode"]:
        value = self.get(key)
        return value if isinstance(value, ConfigNode) else None

    def find(self, *path: str) -> Optional["ConfigNode"]:
        """Walk nested sections by name; ``None`` as soon as one is missing."""
        node: Optional[ConfigNode] = self
        for name in path:
            node = node.get_node(name)
            if node is None:
                return None
        return node

    def to_dict(self) -> Dict[str, Any]:
        return {
            key: value.to_dict() if isinstance(value, ConfigNode) else value
            for key, value in self._entries.values()
        }


class _Assignments(Mapping):
    """Mapper handed to ``vdf``: records every assignment in document order."""

    def __init__(self):
        self.pairs = []

    def __setitem__(self, key, value):
        self.pairs.append((key, value))

    def __getitem__(self, key):
        for k, v in reversed(self.pairs):
            if k == key:
                return v
        raise KeyError(key)

    def __iter__(self):
        return iter([k for k, _ in self.pairs])

    def __len__(self):
        return len(self.pairs)


def _assign(entries: Dict[str, Tuple[str, Any]], key: str, value: Any,
            policy: DuplicateKeyPolicy) -> None:
    folded = _fold_key(key)
    if folded not in entries:
        entries[folded] = (key, value)
        return

    prev_key, prev = entries[folded]
    if isinstance(prev, ConfigNode) and isinstance(value, ConfigNode):
        merged = _merge(prev, value, policy)
        entries[folded] = (key if policy is DuplicateKeyPolicy.LAST else prev_key, merged)
    elif policy is DuplicateKeyPolicy.LAST:
        entries[folded] = (key, value)


def _merge(earlier: ConfigNode, later: ConfigNode, policy: DuplicateKeyPolicy) -> ConfigNode:
    entries = dict(earlier._entries)
    for key, value in later.items():
        _assign(entries, key, value, policy)
    return ConfigNode(entries)


def _fold(assignments: _Assignments, policy: DuplicateKeyPolicy) -> ConfigNode:
    entries: Dict[str, Tuple[str, Any]] = {}
    for key, value in assignments.pairs:
        if isinstance(value, _Assignments):
            value = _fold(value, policy)
        _assign(entries, key, value, policy)
    return ConfigNode(entries)


def parse_text(text: Union[str, bytes],
               policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> ConfigNode:
    """Parse KeyValues text into a :class:`ConfigNode`.

    Empty input is a valid, empty document. Bytes must be UTF-8 (a BOM is
    accepted). Broken nesting or an unterminated string raises ParseError.
    """
    if isinstance(text, bytes):
        try:
            text = text.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ParseError(f"not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc

    if not text.strip():
        return ConfigNode()

    try:
        raw = vdf.loads(text, mapper=_Assignments, merge_duplicate_keys=False)
    except SyntaxError as exc:
        raise ParseError(exc.msg or str(exc), lineno=exc.lineno) from exc

    return _fold(raw, policy)


def load_file(path: Union[str, Path],
              policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> ConfigNode:
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        raise ParseError(f"cannot read file: {exc.strerror or exc}", path=path) from exc
    try:
        return parse_text(data, policy)
    except ParseError as exc:
        raise ParseError(exc.message, lineno=exc.lineno, path=path) from exc


def read_config(path: Union[str, Path],
                policy: DuplicateKeyPolicy = DuplicateKeyPolicy.LAST) -> Optional[ConfigNode]:
    """Load an optional config file; ``None`` if it is missing or unusable."""
    path = Path(path)
    if not path.is_file():
        logger.debug("%s not found", path)
        return None
    try:
        return load_file(path, policy)
    except ParseError as exc:
        logger.warning("Failed to parse %s", exc)
        return None
