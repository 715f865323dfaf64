"""
The tracing system spans of query events are submitted to.

:class:`TracingBackend` lists what query event handling needs from a tracer:
reading, attaching and detaching the current thread's trace context, a clock,
and submitting an already measured span. :class:`OpenTelemetryBackend` is the
implementation used unless another one is given to :func:`querytrace.setup`.
"""
import abc
import time
from typing import Any  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Optional  # noqa:F401

import attr
from opentelemetry import context as otel_context
from opentelemetry import trace

from querytrace.internal.logger import get_logger
from querytrace.sampler import QuerySampler
from querytrace.sampler import reset_sampler_override
from querytrace.sampler import set_sampler_override
from querytrace.version import __version__


log = get_logger(__name__)

TRACER_NAME = "querytrace"

_ATTRIBUTE_TYPES = (str, bool, int, float)


@attr.s(frozen=True, slots=True)
class SpanRequest(object):
    """A completed operation to record as a span. Timestamps are in nanoseconds."""

    name = attr.ib()  # type: str
    start_time = attr.ib()  # type: int
    end_time = attr.ib()  # type: int
    attributes = attr.ib(factory=dict)  # type: Dict[str, Any]
    sampler = attr.ib(default=None)  # type: Optional[Any]


class TracingBackend(abc.ABC):
    @abc.abstractmethod
    def current_context(self):
        # type: () -> Mapping
        """Return the trace context active on the current thread."""

    @abc.abstractmethod
    def attach(self, context):
        # type: (Mapping) -> object
        """Make ``context`` the current thread's active context, returning a token for :meth:`detach`."""

    @abc.abstractmethod
    def detach(self, token):
        # type: (object) -> None
        """Restore the context that was active before the :meth:`attach` call that returned ``token``."""

    @abc.abstractmethod
    def timestamp(self):
        # type: () -> int
        """Return the current time in nanoseconds."""

    @abc.abstractmethod
    def start_and_end_span(self, request):
        # type: (SpanRequest) -> None
        """Record ``request`` as a span, parented to the current thread's context."""

    @abc.abstractmethod
    def register_tracer(self):
        # type: () -> None
        """Register the tracer spans are created with. Calling it again has no effect."""


def _attribute_value(value):
    if isinstance(value, _ATTRIBUTE_TYPES):
        return value
    return str(value)


class OpenTelemetryBackend(TracingBackend):
    def __init__(self, tracer_provider=None):
        # type: (Optional[trace.TracerProvider]) -> None
        self._tracer_provider = tracer_provider
        self._tracer = None  # type: Optional[trace.Tracer]

    def __repr__(self):
        return "{}(tracer_provider={!r})".format(self.__class__.__name__, self._tracer_provider)

    @property
    def tracer_provider(self):
        # type: () -> trace.TracerProvider
        return self._tracer_provider or trace.get_tracer_provider()

    def current_context(self):
        return otel_context.get_current()

    def attach(self, context):
        return otel_context.attach(context)

    def detach(self, token):
        otel_context.detach(token)

    def timestamp(self):
        return time.time_ns()

    def register_tracer(self):
        if self._tracer is None:
            self._tracer = trace.get_tracer(TRACER_NAME, __version__, tracer_provider=self._tracer_provider)

    def start_and_end_span(self, request):
        self.register_tracer()
        attributes = {k: _attribute_value(v) for k, v in request.attributes.items() if v is not None}

        if request.sampler is None:
            span = self._tracer.start_span(request.name, start_time=request.start_time, attributes=attributes)
        else:
            self._check_sampler_override()
            token = set_sampler_override(request.sampler)
            try:
                span = self._tracer.start_span(request.name, start_time=request.start_time, attributes=attributes)
            finally:
                reset_sampler_override(token)

        span.end(end_time=request.end_time)

    def _check_sampler_override(self):
        sampler = getattr(self.tracer_provider, "sampler", None)
        if not isinstance(sampler, QuerySampler):
            log.warning(
                "query span sampler ignored: the tracer provider samples with %r, use a QuerySampler to honor it",
                sampler,
            )
