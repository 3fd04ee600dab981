from core.config import settings
from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter


def build_tracer_provider(exporter: SpanExporter | None = None) -> TracerProvider:
    """One span per text/image generation flow, tagged with the deployment env."""
    resource = Resource.create(
        {
            "service.name": settings.APP_NAME,
            "deployment.environment": settings.ENV,
        }
    )
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(exporter or ConsoleSpanExporter()))
    return provider


def setup_telemetry():
    trace.set_tracer_provider(build_tracer_provider())


tracer = trace.get_tracer("model_generation_gateway")
