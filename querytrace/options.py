from typing import Any  # noqa:F401
from typing import Mapping  # noqa:F401
from typing import Optional  # noqa:F401

import attr

from querytrace import lineage as _lineage
from querytrace.backend import OpenTelemetryBackend
from querytrace.backend import TracingBackend
from querytrace.internal.time_units import validate_time_unit
from querytrace.lineage import LineageRegistry  # noqa:F401
from querytrace.sampler import ComputedSampler  # noqa:F401
from querytrace.sampler import FixedSampler  # noqa:F401
from querytrace.sampler import as_sampler_option
from querytrace.settings import config


def _check_time_unit(instance, attribute, value):
    validate_time_unit(value)


def _optional_str(value):
    return value if value is None else str(value)


@attr.s(frozen=True, slots=True)
class QueryTraceOptions(object):
    """
    Options of one ``querytrace.setup`` registration.

    :param time_unit: unit the duration attributes are converted to
    :param sampler: sampler, sampler function or ``None``, see :mod:`querytrace.sampler`
    :param span_prefix: first part of span names, defaults to the dotted event name
    :param backend: tracing backend spans are submitted to
    :param lineage: registry caller threads and their trace contexts are looked up in
    """

    time_unit = attr.ib(factory=lambda: config.time_unit, validator=_check_time_unit)  # type: str
    sampler = attr.ib(default=None, converter=as_sampler_option)  # type: FixedSampler | ComputedSampler
    span_prefix = attr.ib(factory=lambda: config.span_prefix, converter=_optional_str)  # type: Optional[str]
    backend = attr.ib(
        factory=OpenTelemetryBackend, validator=attr.validators.instance_of(TracingBackend)
    )  # type: TracingBackend
    lineage = attr.ib(factory=lambda: _lineage.registry)  # type: LineageRegistry

    @classmethod
    def from_options(cls, options):
        # type: (Optional[Mapping[str, Any]]) -> QueryTraceOptions
        """Build options from a mapping, unset keys taking their defaults.

        :raises TypeError: on unknown option names
        :raises ValueError: on an unknown time unit
        """
        if isinstance(options, cls):
            return options
        return cls(**dict(options or {}))
