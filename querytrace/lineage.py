"""
Record of which thread handed work to which.

Query events are often handled on a pooled worker thread that has no trace
context of its own, while the thread that submitted the work does. The
:class:`LineageRegistry` keeps, per thread:

* the chain of callers that handed it its current task, nearest first, and
* a snapshot of the trace context a thread had active when it handed work off,
  kept until the last task it handed off is done.

Integrations that move work across threads write to the registry (see
:mod:`querytrace.contrib.futures`); query event handling only reads it.
"""
import threading
from typing import Dict  # noqa:F401
from typing import Hashable  # noqa:F401
from typing import List  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Optional  # noqa:F401
from typing import Sequence  # noqa:F401


class LineageRegistry(object):
    def __init__(self):
        self._lock = threading.Lock()
        self._callers = {}  # type: Dict[Hashable, List[List[Hashable]]]
        self._snapshots = {}  # type: Dict[Hashable, Mapping]
        self._pending = {}  # type: Dict[Hashable, int]

    def __repr__(self):
        return "{}(callers={!r}, snapshots={!r})".format(
            self.__class__.__name__, sorted(self._callers), sorted(self._snapshots)
        )

    @staticmethod
    def current_unit():
        # type: () -> Hashable
        """Return the identity of the calling thread."""
        return threading.get_ident()

    def callers(self, unit):
        # type: (Hashable) -> Optional[List[Hashable]]
        """Return the caller chain of the task ``unit`` is running, nearest first."""
        with self._lock:
            stack = self._callers.get(unit)
            return list(stack[-1]) if stack else None

    def push_callers(self, unit, callers):
        # type: (Hashable, Sequence[Hashable]) -> None
        """Record that ``unit`` starts a task handed over by ``callers``.

        Tasks can nest when a worker runs submitted work inline, so chains are
        kept as a stack and :meth:`pop_callers` restores the previous one.
        """
        with self._lock:
            self._callers.setdefault(unit, []).append(list(callers))

    def pop_callers(self, unit):
        # type: (Hashable) -> None
        with self._lock:
            stack = self._callers.get(unit)
            if stack:
                stack.pop()
            if not stack:
                self._callers.pop(unit, None)

    def stash_context(self, unit, context):
        # type: (Hashable, Mapping) -> None
        """Keep a snapshot of the trace context ``unit`` has active."""
        with self._lock:
            self._snapshots[unit] = context

    def retain_context(self, unit, context):
        # type: (Hashable, Mapping) -> None
        """Stash the context ``unit`` has active when it hands off a task.

        Each call must be matched by one :meth:`release_context` once the task
        is done: the snapshot is dropped when ``unit`` has no task left.
        """
        with self._lock:
            self._snapshots[unit] = context
            self._pending[unit] = self._pending.get(unit, 0) + 1

    def release_context(self, unit):
        # type: (Hashable) -> None
        with self._lock:
            pending = self._pending.get(unit, 0) - 1
            if pending > 0:
                self._pending[unit] = pending
                return
            self._pending.pop(unit, None)
            self._snapshots.pop(unit, None)

    def context_snapshot(self, unit):
        # type: (Hashable) -> Optional[Mapping]
        with self._lock:
            return self._snapshots.get(unit)

    def forget(self, unit):
        # type: (Hashable) -> None
        with self._lock:
            self._callers.pop(unit, None)
            self._snapshots.pop(unit, None)
            self._pending.pop(unit, None)

    def clear(self):
        # type: () -> None
        with self._lock:
            self._callers.clear()
            self._snapshots.clear()
            self._pending.clear()


# process wide registry used unless another one is given to ``querytrace.setup``
registry = LineageRegistry()
