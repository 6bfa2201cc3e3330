from __future__ import annotations

from fastapi import FastAPI
from prometheus_client import Counter
from prometheus_fastapi_instrumentator import Instrumentator

from services.common.docs import DOCUMENT_ROUTE

OPENAPI_DOCUMENT_COUNTER = Counter(
    "templateapp_openapi_documents_served_total",
    "Count of OpenAPI documents served to API explorers.",
    labelnames=("document",),
)


def setup_metrics(app: FastAPI) -> None:
    instrumentator = Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        excluded_handlers={"/metrics", "/health"},
    )
    instrumentator.instrument(app)
    instrumentator.expose(app, include_in_schema=False)

    @app.middleware("http")
    async def _openapi_document_counter(request, call_next):  # type: ignore[no-untyped-def]
        response = await call_next(request)
        if request.url.path == DOCUMENT_ROUTE and response.status_code == 200:
            OPENAPI_DOCUMENT_COUNTER.labels(document="v1").inc()
        return response
