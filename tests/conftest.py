from opentelemetry import context as otel_context
from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter
import pytest

from querytrace.backend import OpenTelemetryBackend
from querytrace.internal import telemetry
from querytrace.lineage import LineageRegistry
from querytrace.sampler import QuerySampler
from tests.utils import FakeBackend
from tests.utils import FakeRepo


SPAN_EXPORTER = InMemorySpanExporter()
TRACER_PROVIDER = TracerProvider(sampler=QuerySampler())
TRACER_PROVIDER.add_span_processor(SimpleSpanProcessor(SPAN_EXPORTER))
# set_tracer_provider can only be called once
trace.set_tracer_provider(TRACER_PROVIDER)


@pytest.fixture
def span_exporter():
    SPAN_EXPORTER.clear()
    yield SPAN_EXPORTER
    SPAN_EXPORTER.clear()


@pytest.fixture
def oteltracer():
    return TRACER_PROVIDER.get_tracer(__name__)


@pytest.fixture
def otel_backend():
    return OpenTelemetryBackend(tracer_provider=TRACER_PROVIDER)


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def lineage():
    return LineageRegistry()


@pytest.fixture(autouse=True)
def reset_telemetry():
    telemetry.reset()
    yield
    telemetry.reset()


@pytest.fixture(autouse=True)
def empty_otel_context():
    assert len(otel_context.get_current()) == 0, "a previous test leaked its trace context"
    yield


@pytest.fixture
def repo():
    return FakeRepo(hostname="localhost", database="querytrace_test", username="postgres")


@pytest.fixture
def metadata(repo):
    return {
        "query": "SELECT u0.id, u0.email FROM users AS u0",
        "source": "users",
        "result": ("ok", {"num_rows": 2}),
        "repo": repo,
        "type": "ecto_sql_query",
        "params": [],
    }


@pytest.fixture
def measurements():
    return {
        "total_time": 3500000,
        "decode_time": 250000,
        "query_time": 3000000,
        "queue_time": 250000,
    }
