"""Named-event hook registry.

Engine components announce milestones by calling :func:`dispatch` with one of
the event-name constants below; tools and tests subscribe with
:func:`register_hook`.  A failing callback is logged and never propagates into
the component that dispatched the event.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from threading import RLock
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, Mapping

from . import logger

HookFn = Callable[["HookEvent"], None]

ENUMERATION_WINDOW_COMPLETED = "enumeration.window.completed"
LANGUAGE_INVENTED = "language.invented"
TASK_EVALUATED = "task.evaluated"


@dataclass(frozen=True)
class HookEvent:
    name: str
    payload: Mapping[str, Any]
    timestamp: float


class HookHandle:
    """Disposable subscription; also usable as a context manager."""

    def __init__(self, name: str, fn: HookFn) -> None:
        self._name = name
        self._fn = fn
        self._closed = False

    def close(self) -> None:
        if self._closed:
            return
        unregister_hook(self._name, self._fn)
        self._closed = True

    def __enter__(self) -> "HookHandle":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


_LOCK = RLock()
_HOOKS: Dict[str, list[HookFn]] = {}
_LOGGER = logger.get_logger("programinduction.telemetry.hooks")


def register_hook(name: str, fn: HookFn) -> HookHandle:
    if not isinstance(name, str) or not name:
        raise ValueError("hook name must be a non-empty string")
    if not callable(fn):
        raise TypeError("hook callback must be callable")
    with _LOCK:
        _HOOKS.setdefault(name, []).append(fn)
    return HookHandle(name, fn)


def unregister_hook(name: str, fn: HookFn) -> None:
    with _LOCK:
        bucket = _HOOKS.get(name)
        if not bucket or fn not in bucket:
            return
        bucket.remove(fn)
        if not bucket:
            del _HOOKS[name]


def dispatch(name: str, payload: Mapping[str, Any] | None = None) -> None:
    """Call every hook registered for ``name`` with a read-only copy of ``payload``."""

    with _LOCK:
        callbacks: Iterable[HookFn] = tuple(_HOOKS.get(name, ()))
    if not callbacks:
        return
    event = HookEvent(
        name=name,
        payload=MappingProxyType(dict(payload or {})),
        timestamp=time.time(),
    )
    for fn in callbacks:
        try:
            fn(event)
        except Exception:  # pragma: no cover - subscriber bugs stay with the subscriber
            _LOGGER.exception("hook %s failed", name)


def registered_hooks() -> Mapping[str, tuple[HookFn, ...]]:
    with _LOCK:
        return {name: tuple(callbacks) for name, callbacks in _HOOKS.items()}


__all__ = [
    "ENUMERATION_WINDOW_COMPLETED",
    "HookEvent",
    "HookFn",
    "HookHandle",
    "LANGUAGE_INVENTED",
    "TASK_EVALUATED",
    "dispatch",
    "register_hook",
    "registered_hooks",
    "unregister_hook",
]
