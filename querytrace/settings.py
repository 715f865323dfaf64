from typing import Optional

from envier import Env
from envier import validators

from querytrace.internal.time_units import TIME_UNITS


class QueryTraceConfig(Env):
    """Process wide defaults, read from ``QUERYTRACE_*`` environment variables.

    Options passed to :func:`querytrace.setup` take precedence over these.
    """

    __prefix__ = "querytrace"

    time_unit = Env.var(
        str,
        "time_unit",
        default="microsecond",
        help="Unit the query duration attributes are reported in",
        validator=validators.choice(list(TIME_UNITS)),
    )
    span_prefix = Env.var(
        Optional[str],
        "span_prefix",
        default=None,
        help="First part of every span name, instead of the dotted event name",
    )
    logging_rate = Env.var(
        int,
        "logging_rate",
        default=60,
        help="Seconds between two records logged from the same call site, 0 disables rate limiting",
    )


config = QueryTraceConfig()
