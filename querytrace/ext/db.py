"""
Span attributes and metadata values of query events.
"""

# span attributes
ERROR = "error"
TYPE = "db.type"
STATEMENT = "db.statement"
SOURCE = "source"
INSTANCE = "db.instance"
URL = "db.url"

# measurement keys, all durations in the native time unit
TOTAL_TIME = "total_time"
DECODE_TIME = "decode_time"
QUERY_TIME = "query_time"
QUEUE_TIME = "queue_time"

# optional measurements reported as attributes when present, in attribute order
PHASE_TIMES = (DECODE_TIME, QUERY_TIME, QUEUE_TIME)

# metadata keys
META_QUERY = "query"
META_SOURCE = "source"
META_RESULT = "result"
META_REPO = "repo"
META_TYPE = "type"

# query kind tag of SQL adapters, reported as ``db.type: sql``
SQL_QUERY_TYPE = "ecto_sql_query"
SQL = "sql"

# scheme of the ``db.url`` built when the repo has no url configured
URL_SCHEME = "ecto"

RESULT_OK = "ok"


def duration_attribute(key, time_unit):
    # type: (str, str) -> str
    """Return the attribute name of a measurement, e.g. ``query_time_microseconds``."""
    return "%s_%ss" % (key, time_unit)


def normalize_type(query_type):
    """Return the ``db.type`` of a query kind tag.

    Only the SQL adapter tag is renamed, tags of other adapters are reported as is.
    """
    if query_type == SQL_QUERY_TYPE:
        return SQL
    return query_type


def is_ok(result):
    # type: (object) -> bool
    """Return whether a query result is an ``("ok", value)`` pair."""
    return isinstance(result, tuple) and len(result) == 2 and result[0] == RESULT_OK
