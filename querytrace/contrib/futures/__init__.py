"""
The ``futures`` integration records which thread submitted the work run by a
:class:`~concurrent.futures.ThreadPoolExecutor`, together with the trace
context the submitting thread had active.

Spans of queries run by the pool's worker threads are then parented to the
submitting thread's trace, although the worker threads have no trace context
of their own::

    import querytrace
    from querytrace.contrib import futures

    futures.patch()
    querytrace.setup(["blog", "repo"])

    with tracer.start_as_current_span("request"):
        executor.submit(run_report_queries)  # query spans are children of "request"
"""
from querytrace.contrib.futures.patch import patch  # noqa: F401
from querytrace.contrib.futures.patch import unpatch  # noqa: F401
