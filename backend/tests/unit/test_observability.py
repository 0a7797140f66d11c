"""Unit tests for logging, request IDs, health and metrics endpoints"""

import json
import logging
import sys

from observability.logging_config import JSONFormatter
from observability.request_id import get_request_id, set_request_id


class TestJSONFormatter:

    def test_includes_request_id_and_context(self):
        record = logging.LogRecord("notarization.service", logging.INFO, __file__, 1, "Document created", None, None)
        record.request_id = "req-123"
        record.document_id = "7d3c1c52-44c4-4c1e-9a50-3f3c2b6c1a01"

        data = json.loads(JSONFormatter().format(record))

        assert data["level"] == "INFO"
        assert data["request_id"] == "req-123"
        assert data["message"] == "Document created"
        assert data["document_id"] == "7d3c1c52-44c4-4c1e-9a50-3f3c2b6c1a01"
        assert "session_id" not in data

    def test_exception_is_serialized(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            exc_info = sys.exc_info()

        record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", None, exc_info)
        data = json.loads(JSONFormatter().format(record))
        assert data["error"] == "boom"
        assert "RuntimeError" in data["traceback"]


class TestRequestId:

    def test_context_roundtrip(self):
        set_request_id("abc")
        assert get_request_id() == "abc"

    def test_header_is_propagated(self, client):
        response = client.get("/health", headers={"X-Request-ID": "trace-42"})
        assert response.headers["X-Request-ID"] == "trace-42"

    def test_header_is_generated(self, client):
        response = client.get("/health")
        assert response.headers["X-Request-ID"]


class TestEndpoints:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["components"]["database"]["status"] == "healthy"

    def test_metrics(self, client):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "notaryflow_document_transitions_total" in response.text

    def test_unknown_route_uses_error_format(self, client):
        response = client.get("/v1/nowhere")
        assert response.status_code == 404
        assert response.json()["code"] == "not_found"
