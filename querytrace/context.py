"""
Parenting of query spans handled on threads without a trace context.

When a query runs on a pooled worker thread, the worker usually has no trace
context of its own, while the thread that handed it the work does. Before the
query span is created, :func:`maybe_attach_parent_context` attaches the
context of the nearest caller recorded in the lineage registry, provided that

1. no context is active on the current thread,
2. the current thread has a recorded caller, and
3. that caller stashed a non empty trace context.

Any of these not holding, for whatever reason, leaves the thread untouched and
the span is created without a parent. The attached context must be detached
with :func:`detach_parent_context` once the span has ended, so that later work
on the same thread does not inherit it.
"""
from typing import Hashable  # noqa:F401
from typing import Mapping
from typing import Optional  # noqa:F401

from querytrace.backend import TracingBackend  # noqa:F401
from querytrace.internal.logger import get_logger
from querytrace.lineage import LineageRegistry  # noqa:F401


log = get_logger(__name__)


def _no_context_set(backend):
    # type: (TracingBackend) -> bool
    current = backend.current_context()
    return current is None or len(current) == 0


def _parent_unit(lineage, unit):
    # type: (LineageRegistry, Hashable) -> Optional[Hashable]
    callers = lineage.callers(unit)
    if isinstance(callers, (list, tuple)) and callers:
        return callers[0]
    return None


def _parent_context(lineage, parent):
    # type: (LineageRegistry, Hashable) -> Optional[Mapping]
    snapshot = lineage.context_snapshot(parent)
    if isinstance(snapshot, Mapping) and len(snapshot) > 0:
        return snapshot
    return None


def maybe_attach_parent_context(backend, lineage, unit=None):
    # type: (TracingBackend, LineageRegistry, Optional[Hashable]) -> Optional[object]
    """Attach the nearest caller's trace context to the current thread if it has none.

    :returns: the token to pass to :func:`detach_parent_context` if a context was
        attached, ``None`` otherwise
    """
    if not _no_context_set(backend):
        return None

    if unit is None:
        unit = lineage.current_unit()
    parent = _parent_unit(lineage, unit)
    if parent is None:
        return None

    parent_context = _parent_context(lineage, parent)
    if parent_context is None:
        return None

    log.debug("attaching trace context of caller %r to %r", parent, unit)
    return backend.attach(parent_context)


def detach_parent_context(backend, token):
    # type: (TracingBackend, Optional[object]) -> None
    if token is not None:
        backend.detach(token)
