"""
Conversion of completed query events into spans.

A query event is only published once the query has completed, with its
durations already measured. Each event therefore becomes a single span that is
started and ended at once: it ends when the event is handled and starts
``total_time`` earlier.
"""
from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Mapping
from typing import Optional  # noqa:F401
from typing import Sequence  # noqa:F401
from urllib.parse import urlunsplit

import attr

from querytrace.backend import SpanRequest
from querytrace.context import detach_parent_context
from querytrace.context import maybe_attach_parent_context
from querytrace.ext import db
from querytrace.internal.time_units import NATIVE
from querytrace.internal.time_units import convert_time_unit
from querytrace.options import QueryTraceOptions


def _repo_config(repo):
    # type: (Any) -> Mapping[str, Any]
    repo_config = getattr(repo, "config", None)
    if callable(repo_config):
        repo_config = repo_config()
    if isinstance(repo_config, Mapping):
        return repo_config
    return {}


def repo_url(repo_config):
    # type: (Mapping[str, Any]) -> str
    """Return the repo's configured url, or one built from its hostname.

    The port is not part of the built url.
    """
    url = repo_config.get("url")
    if url is not None:
        return url
    return urlunsplit((db.URL_SCHEME, repo_config.get("hostname") or "", "", "", ""))


def span_name(event, source, span_prefix=None):
    # type: (Sequence[str], Any, Optional[str]) -> str
    """Return ``<prefix>:<source>``, the prefix defaulting to the dotted event name."""
    prefix = span_prefix if span_prefix is not None else ".".join(str(segment) for segment in event)
    return "%s:%s" % (prefix, "" if source is None else source)


def phase_attributes(measurements, time_unit):
    # type: (Mapping[str, Any], str) -> Dict[str, int]
    """Return the converted durations of the query phases that were measured."""
    return {
        db.duration_attribute(key, time_unit): convert_time_unit(measurements[key], NATIVE, time_unit)
        for key in db.PHASE_TIMES
        if measurements.get(key) is not None
    }


def base_attributes(metadata, total_time, time_unit):
    # type: (Mapping[str, Any], Optional[int], str) -> Dict[str, Any]
    repo_config = _repo_config(metadata.get(db.META_REPO))

    attributes = {}  # type: Dict[str, Any]
    if not db.is_ok(metadata.get(db.META_RESULT)):
        attributes[db.ERROR] = True
    attributes[db.TYPE] = db.normalize_type(metadata.get(db.META_TYPE))
    attributes[db.STATEMENT] = metadata.get(db.META_QUERY)
    attributes[db.SOURCE] = metadata.get(db.META_SOURCE)
    attributes[db.INSTANCE] = repo_config.get("database")
    attributes[db.URL] = repo_url(repo_config)
    if total_time is not None:
        attributes[db.duration_attribute(db.TOTAL_TIME, time_unit)] = convert_time_unit(total_time, NATIVE, time_unit)
    return {k: v for k, v in attributes.items() if v is not None}


def build_span_request(event, measurements, metadata, options, end_time):
    # type: (Sequence[str], Mapping[str, Any], Mapping[str, Any], QueryTraceOptions, int) -> SpanRequest
    """Compute the span of a query that completed at ``end_time``, sampler left unset."""
    total_time = measurements.get(db.TOTAL_TIME)

    attributes = phase_attributes(measurements, options.time_unit)
    attributes.update(base_attributes(metadata, total_time, options.time_unit))

    return SpanRequest(
        name=span_name(event, metadata.get(db.META_SOURCE), options.span_prefix),
        start_time=end_time - (total_time or 0),
        end_time=end_time,
        attributes=attributes,
    )


def handle_event(event, measurements, metadata, options):
    # type: (Sequence[str], Mapping[str, Any], Mapping[str, Any], Any) -> None
    """Record a completed query as a span. Attached to query events by ``querytrace.setup``."""
    options = QueryTraceOptions.from_options(options)
    backend = options.backend
    measurements = measurements or {}
    metadata = metadata or {}

    end_time = backend.timestamp()
    request = build_span_request(event, measurements, metadata, options, end_time)

    token = maybe_attach_parent_context(backend, options.lineage)
    try:
        sampler = options.sampler.resolve({"measurements": measurements, "meta": metadata})
        if sampler is not None:
            request = attr.evolve(request, sampler=sampler)
        backend.start_and_end_span(request)
    finally:
        detach_parent_context(backend, token)
