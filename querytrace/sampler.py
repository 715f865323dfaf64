"""
Per query sampler selection.

The ``sampler`` option of :func:`querytrace.setup` is either a fixed sampler
(or ``None``), or a function that is called with the query's telemetry data::

    def sample_slow_queries(telemetry_data):
        if telemetry_data["measurements"]["total_time"] > 50_000_000:
            return ALWAYS_ON
        return None

    querytrace.setup(["blog", "repo"], sampler=sample_slow_queries)

A function returning ``None`` leaves the decision to the tracer provider's sampler.

OpenTelemetry configures samplers per ``TracerProvider``, so a per span
sampler only takes effect when the provider samples with :class:`QuerySampler`::

    provider = TracerProvider(sampler=QuerySampler(ParentBased(ALWAYS_ON)))
"""
import contextvars
from typing import Any  # noqa:F401
from typing import Callable  # noqa:F401
from typing import Dict  # noqa:F401
from typing import Optional  # noqa:F401

import attr
from opentelemetry.sdk.trace.sampling import ALWAYS_ON
from opentelemetry.sdk.trace.sampling import ParentBased
from opentelemetry.sdk.trace.sampling import Sampler
from opentelemetry.sdk.trace.sampling import SamplingResult  # noqa:F401


TelemetryData = Dict[str, Any]


@attr.s(frozen=True, slots=True)
class FixedSampler(object):
    """The same sampler, or ``None``, for every query."""

    value = attr.ib(default=None)  # type: Optional[Sampler]

    def resolve(self, telemetry_data):
        # type: (TelemetryData) -> Optional[Sampler]
        return self.value


@attr.s(frozen=True, slots=True)
class ComputedSampler(object):
    """A sampler chosen per query from its measurements and metadata."""

    function = attr.ib()  # type: Callable[[TelemetryData], Optional[Sampler]]

    def resolve(self, telemetry_data):
        # type: (TelemetryData) -> Optional[Sampler]
        return self.function(telemetry_data)


def as_sampler_option(value):
    """Wrap a ``sampler`` option value in :class:`FixedSampler` or :class:`ComputedSampler`."""
    if isinstance(value, (FixedSampler, ComputedSampler)):
        return value
    if callable(value) and not isinstance(value, Sampler):
        return ComputedSampler(value)
    return FixedSampler(value)


_sampler_override = contextvars.ContextVar("querytrace_sampler_override", default=None)


def set_sampler_override(sampler):
    # type: (Optional[Sampler]) -> contextvars.Token
    """Make ``sampler`` decide for the spans started until the returned token is reset."""
    return _sampler_override.set(sampler)


def reset_sampler_override(token):
    # type: (contextvars.Token) -> None
    _sampler_override.reset(token)


class QuerySampler(Sampler):
    """Samples with the sampler chosen for the query being traced, if any, else with ``root``."""

    def __init__(self, root=None):
        # type: (Optional[Sampler]) -> None
        self._root = root if root is not None else ParentBased(ALWAYS_ON)

    @property
    def root(self):
        # type: () -> Sampler
        return self._root

    def should_sample(
        self,
        parent_context,
        trace_id,
        name,
        kind=None,
        attributes=None,
        links=None,
        trace_state=None,
    ):
        # type: (...) -> SamplingResult
        sampler = _sampler_override.get() or self._root
        return sampler.should_sample(
            parent_context,
            trace_id,
            name,
            kind=kind,
            attributes=attributes,
            links=links,
            trace_state=trace_state,
        )

    def get_description(self):
        # type: () -> str
        return "QuerySampler{{{}}}".format(self._root.get_description())
