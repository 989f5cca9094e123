"""Interned operator identities."""

from __future__ import annotations

import threading
from functools import total_ordering
from typing import ClassVar

from tracegraph._hashing import HashT, string_hash

DEFAULT_NAMESPACE = "xla"


@total_ordering
class OpKind:
    """The kind of operation a node is associated with.

    Instances are interned: ``OpKind.get(name)`` returns the same object for the
    same qualified name, from any thread. Equality is therefore identity, and
    ordering follows the order in which symbols were first interned.

    Names are qualified as ``namespace::name``. Operations specific to the
    backend side live in the ``xla`` namespace, which is also the namespace of
    unqualified names.

    Example:
        >>> OpKind.get("add") is OpKind.get("xla::add")
        True
        >>> str(OpKind.get("aten::mul"))
        'aten::mul'

    """

    __slots__ = ("_hash", "key", "qualified_name")

    _table: ClassVar[dict[str, OpKind]] = {}
    _lock: ClassVar[threading.Lock] = threading.Lock()

    def __init__(self, qualified_name: str, key: int) -> None:
        self.qualified_name = qualified_name
        self.key = key
        self._hash = string_hash(qualified_name)

    @classmethod
    def get(cls, name: str) -> OpKind:
        """Retrieve the interned operation for a name, creating it on first use."""
        qualified_name = name if "::" in name else f"{DEFAULT_NAMESPACE}::{name}"
        with cls._lock:
            op = cls._table.get(qualified_name)
            if op is None:
                op = cls(qualified_name, len(cls._table))
                cls._table[qualified_name] = op
            return op

    @property
    def namespace(self) -> str:
        return self.qualified_name.split("::", 1)[0]

    @property
    def unqualified_name(self) -> str:
        return self.qualified_name.split("::", 1)[1]

    def hash(self) -> HashT:
        """Deterministic hash of the qualified name."""
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, OpKind):
            return NotImplemented
        return self is other

    def __lt__(self, other: OpKind) -> bool:
        if not isinstance(other, OpKind):
            return NotImplemented
        return self.key < other.key

    def __hash__(self) -> int:
        return self._hash

    def __copy__(self) -> OpKind:
        return self

    def __deepcopy__(self, memo: dict[int, object]) -> OpKind:
        return self

    def __reduce__(self) -> tuple[object, tuple[str]]:
        return (OpKind.get, (self.qualified_name,))

    def __repr__(self) -> str:
        return f"OpKind({self.qualified_name!r})"

    def __str__(self) -> str:
        return self.qualified_name
