"""Nested naming scopes recorded on IR nodes.

Scopes only help identify where a node came from; they never change what a
node computes. The active scopes live in the current execution context, so
every thread (and every asyncio task) traces with its own stack.
"""

from __future__ import annotations

import itertools
from contextvars import ContextVar
from dataclasses import dataclass, field

from scoped_context import NoContextError, ScopedContext

SCOPE_SEPARATOR = "/"

# Scopes created under an older epoch no longer contribute names.
_scope_epoch_var: ContextVar[int] = ContextVar("scope_epoch", default=0)
_epoch_counter = itertools.count(1)


@dataclass(slots=True, eq=False)
class ScopePusher(ScopedContext):
    """Enter a named IR scope for the duration of a ``with`` block.

    The enclosing scope is captured when the pusher is created, so create it in
    the ``with`` statement itself.

    Example:
        >>> with ScopePusher("encoder"), ScopePusher("layer0"):
        ...     current_scope()
        'encoder/layer0'

    """

    name: str
    parent: ScopePusher | None = field(default=None, init=False, repr=False)
    epoch: int = field(default=0, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.name:
            msg = "Scope name must not be empty"
            raise ValueError(msg)
        self.epoch = _scope_epoch_var.get()
        try:
            self.parent = ScopePusher.current()
        except NoContextError:
            self.parent = None


def active_scopes() -> tuple[str, ...]:
    """Names of the active scopes, outermost first."""
    try:
        pusher: ScopePusher | None = ScopePusher.current()
    except NoContextError:
        return ()
    epoch = _scope_epoch_var.get()
    names: list[str] = []
    while pusher is not None and pusher.epoch == epoch:
        names.append(pusher.name)
        pusher = pusher.parent
    return tuple(reversed(names))


def current_scope() -> str:
    """The active scope path, e.g. ``"encoder/layer0"``; empty outside any scope."""
    return SCOPE_SEPARATOR.join(active_scopes())


def reset_scopes() -> None:
    """Forget every scope entered so far in the current context.

    Meant for starting an unrelated trace: scopes that are still open keep
    popping normally, but their names no longer appear on new nodes.
    """
    _scope_epoch_var.set(next(_epoch_counter))
