"""
Spans for completed database queries.

ORM instrumentation publishes one event per completed query on the
:mod:`querytrace.internal.telemetry` channel, named after the repo with a
trailing ``"query"``, e.g. ``("blog", "repo", "query")``. Attach the span
handler for a repo when the application starts::

    import querytrace

    querytrace.setup(["blog", "repo"])

Each event is then recorded as an OpenTelemetry span named
``blog.repo.query:<source>`` carrying the statement, the database and the
measured durations.

The following options can be given to :func:`setup`:

* ``time_unit``: unit the duration attributes are converted to, one of
  ``second``, ``millisecond``, ``microsecond`` (the default, or
  ``QUERYTRACE_TIME_UNIT``) and ``nanosecond``.
* ``sampler``: an OpenTelemetry sampler, or a function called with
  ``{"measurements": ..., "meta": ...}`` returning a sampler or ``None``.
  Requires the tracer provider to sample with :class:`querytrace.sampler.QuerySampler`.
* ``span_prefix``: first part of the span names, defaults to the dotted event
  name (or ``QUERYTRACE_SPAN_PREFIX``). It is always followed by a colon and
  the query source.
* ``backend``: the :class:`querytrace.backend.TracingBackend` spans are
  submitted to, OpenTelemetry's global tracer provider by default.
* ``lineage``: the :class:`querytrace.lineage.LineageRegistry` used to parent
  spans of queries run on worker threads, see :mod:`querytrace.contrib.futures`.
"""
from typing import Any  # noqa:F401
from typing import Sequence  # noqa:F401

from querytrace.handler import handle_event
from querytrace.internal import telemetry
from querytrace.internal.logger import get_logger
from querytrace.options import QueryTraceOptions
from querytrace.version import __version__


__all__ = ["setup", "teardown", "handle_event", "QueryTraceOptions", "__version__"]

log = get_logger(__name__)

QUERY_EVENT = "query"


def _query_event(event_prefix):
    # type: (Sequence[str]) -> tuple
    return tuple(event_prefix) + (QUERY_EVENT,)


def _handler_id(event):
    # type: (tuple) -> tuple
    return (__name__, event)


def setup(event_prefix, **options):
    # type: (Sequence[str], Any) -> bool
    """
    Record the queries published under ``event_prefix`` as spans.

    Call it once per repo, from application start up code. See the module
    documentation for the supported options.

    :returns: ``True`` once attached, ``False`` if the handler for this prefix
        was already attached
    :raises TypeError: on unknown options
    :raises ValueError: on an unknown time unit
    """
    query_options = QueryTraceOptions.from_options(options)
    # registering the tracer again, for another repo, has no effect
    query_options.backend.register_tracer()

    event = _query_event(event_prefix)
    try:
        telemetry.attach(_handler_id(event), event, handle_event, query_options)
    except telemetry.HandlerExistsError:
        log.debug("query span handler already attached to %r", event)
        return False
    return True


def teardown(event_prefix):
    # type: (Sequence[str]) -> bool
    """Stop recording the queries published under ``event_prefix``, returning whether they were."""
    return telemetry.detach(_handler_id(_query_event(event_prefix)))
