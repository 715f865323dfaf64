from concurrent.futures import ThreadPoolExecutor
import threading

from opentelemetry import context as otel_context
import pytest

from querytrace.contrib.futures import patch
from querytrace.contrib.futures import unpatch
from querytrace.handler import handle_event
from querytrace.options import QueryTraceOptions


EVENT = ("blog", "repo", "query")


@pytest.fixture
def patched(lineage):
    patch(lineage=lineage)
    yield
    unpatch()


@pytest.fixture
def options(otel_backend, lineage):
    return QueryTraceOptions(backend=otel_backend, lineage=lineage)


def _query_spans(span_exporter):
    return [s for s in span_exporter.get_finished_spans() if s.name == "blog.repo.query:users"]


def test_patch_unpatch():
    original = ThreadPoolExecutor.__dict__["submit"]

    patch()
    patch()
    assert ThreadPoolExecutor.__dict__["submit"].__wrapped__ is original

    unpatch()
    unpatch()
    assert ThreadPoolExecutor.__dict__["submit"] is original

    # patching again wraps the original function once
    patch()
    assert ThreadPoolExecutor.__dict__["submit"].__wrapped__ is original

    unpatch()
    assert ThreadPoolExecutor.__dict__["submit"] is original


def test_submitter_context_released_when_tasks_are_done(patched, lineage, oteltracer):
    main = lineage.current_unit()

    with oteltracer.start_as_current_span("request"):
        with ThreadPoolExecutor(max_workers=2) as executor:
            during = [executor.submit(lineage.context_snapshot, main) for _ in range(4)]

    assert all(f.result() is not None for f in during)
    assert lineage.context_snapshot(main) is None


def test_submitter_context_released_on_cancel(patched, lineage, oteltracer):
    main = lineage.current_unit()
    started = threading.Event()
    proceed = threading.Event()

    def block():
        started.set()
        proceed.wait(5)

    with oteltracer.start_as_current_span("request"):
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(block)
            started.wait(5)
            queued = executor.submit(lambda: None)
            assert queued.cancel()
            # the running task still holds the snapshot
            assert lineage.context_snapshot(main) is not None
            proceed.set()

    assert lineage.context_snapshot(main) is None


def test_submitter_context_released_on_submit_error(patched, lineage):
    executor = ThreadPoolExecutor(max_workers=1)
    executor.shutdown()

    with pytest.raises(RuntimeError):
        executor.submit(lambda: None)

    assert lineage.context_snapshot(lineage.current_unit()) is None



def test_worker_query_is_child_of_submitter(patched, options, oteltracer, span_exporter, measurements, metadata):
    def run_query():
        handle_event(EVENT, measurements, metadata, options)
        return len(otel_context.get_current())

    with oteltracer.start_as_current_span("request") as root:
        with ThreadPoolExecutor(max_workers=1) as executor:
            context_size = executor.submit(run_query).result()

    (query,) = _query_spans(span_exporter)
    assert query.parent.span_id == root.get_span_context().span_id
    assert query.context.trace_id == root.get_span_context().trace_id
    # the caller's context is only attached while the span is created
    assert context_size == 0


def test_worker_lineage_is_cleared(patched, lineage, oteltracer):
    with oteltracer.start_as_current_span("request"):
        with ThreadPoolExecutor(max_workers=1) as executor:
            during = executor.submit(lambda: lineage.callers(lineage.current_unit())).result()
            worker = executor.submit(lineage.current_unit).result()

    assert during == [lineage.current_unit()]
    assert lineage.callers(worker) is None


def test_nested_submit_records_caller_chain(patched, lineage):
    main = lineage.current_unit()

    with ThreadPoolExecutor(max_workers=1) as outer, ThreadPoolExecutor(max_workers=1) as inner:

        def submit_inner():
            return lineage.current_unit(), inner.submit(lambda: lineage.callers(lineage.current_unit())).result()

        outer_unit, inner_callers = outer.submit(submit_inner).result()

    assert inner_callers == [outer_unit, main]


def test_submit_arguments(patched):
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(lambda a, b=0: a + b, 1, b=2)

    assert future.result() == 3


def test_unpatched_worker_query_has_no_parent(options, oteltracer, span_exporter, measurements, metadata):
    with oteltracer.start_as_current_span("request"):
        with ThreadPoolExecutor(max_workers=1) as executor:
            executor.submit(handle_event, EVENT, measurements, metadata, options).result()

    (query,) = _query_spans(span_exporter)
    assert query.parent is None
