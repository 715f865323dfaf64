"""
In-process event channel query events are published on.

ORM instrumentation calls :func:`execute` once per completed query::

    telemetry.execute(("blog", "repo", "query"), {"total_time": 1200}, {"query": "SELECT 1", ...})

and every function attached to that exact event name is called with
``(event_name, measurements, metadata, config)``, where ``config`` is the value
given to :func:`attach`.

Handlers are identified by a unique, hashable handler id. Attaching the same
id twice fails with :class:`HandlerExistsError`.
"""
import threading
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Hashable  # noqa:F401
from typing import List  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Sequence  # noqa:F401
from typing import Tuple  # noqa:F401

import attr

from querytrace.internal.logger import get_logger


log = get_logger(__name__)


EventName = Tuple[str, ...]
HandlerFunction = Callable[[EventName, Mapping[str, Any], Mapping[str, Any], Any], None]


class HandlerExistsError(ValueError):
    """Raised when attaching a handler id that is already attached."""


@attr.s(frozen=True, slots=True)
class Handler(object):
    id = attr.ib()  # type: Hashable
    event_name = attr.ib(converter=tuple)  # type: EventName
    function = attr.ib()  # type: HandlerFunction
    config = attr.ib(default=None)  # type: Any


_lock = threading.Lock()
_handlers = {}  # type: Dict[Hashable, Handler]


def attach(handler_id, event_name, function, config=None):
    # type: (Hashable, Sequence[str], HandlerFunction, Any) -> None
    """
    Attach ``function`` to ``event_name`` under ``handler_id``.

    :raises HandlerExistsError: if ``handler_id`` is already attached
    """
    handler = Handler(handler_id, event_name, function, config)
    with _lock:
        if handler_id in _handlers:
            raise HandlerExistsError(handler_id)
        _handlers[handler_id] = handler


def detach(handler_id):
    # type: (Hashable) -> bool
    """Detach a handler, returning whether it was attached."""
    with _lock:
        return _handlers.pop(handler_id, None) is not None


def list_handlers(event_prefix=()):
    # type: (Sequence[str]) -> List[Handler]
    """Return the handlers attached to events starting with ``event_prefix``."""
    prefix = tuple(event_prefix)
    with _lock:
        handlers = list(_handlers.values())
    return [h for h in handlers if h.event_name[: len(prefix)] == prefix]


def execute(event_name, measurements, metadata):
    # type: (Sequence[str], Mapping[str, Any], Mapping[str, Any]) -> None
    """
    Call the handlers attached to ``event_name``.

    A handler that raises is detached and its error logged, the remaining
    handlers still run.
    """
    event = tuple(event_name)
    with _lock:
        handlers = [h for h in _handlers.values() if h.event_name == event]

    for handler in handlers:
        try:
            handler.function(event, measurements, metadata, handler.config)
        except Exception:
            log.error("handler %r failed on event %r and has been detached", handler.id, event, exc_info=True)
            detach(handler.id)


def reset():
    # type: () -> None
    """Detach every handler."""
    with _lock:
        _handlers.clear()
