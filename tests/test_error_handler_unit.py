"""Focused unit tests for global exception handling behaviors.

These tests exercise the public contract via a FastAPI test app using the
installed exception handler and ExceptionNormalizationMiddleware.
"""

from __future__ import annotations

from unittest.mock import patch

from fastapi import FastAPI, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.testclient import TestClient
from pydantic import BaseModel, Field

from core.error_handler import (
    ExceptionNormalizationMiddleware,
    global_exception_handler,
)
from core.exceptions import DomainError, InvalidArticleUrlError, UpstreamServiceError
from core.middleware import CorrelationIdMiddleware


class Item(BaseModel):
    blog_url: str = Field(min_length=8)
    emoji_count: int = Field(ge=0)


def build_test_app(env: str) -> TestClient:
    app = FastAPI()
    app.add_middleware(ExceptionNormalizationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
    app.add_exception_handler(DomainError, global_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(HTTPException, global_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, global_exception_handler)  # type: ignore[arg-type]

    @app.post("/items")
    async def create_item(item: Item):  # pragma: no cover - executed via client
        return {"ok": True, "item": item.model_dump()}

    @app.get("/invalid-url")
    async def invalid_url():
        raise InvalidArticleUrlError("URL must use HTTP or HTTPS protocol")

    @app.get("/upstream")
    async def upstream():
        raise UpstreamServiceError("Generation failed for variation 2")

    @app.get("/boom")
    async def boom():
        raise RuntimeError("Exploded with api_key=should_not_leak")

    @app.get("/missing")
    async def missing():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Nope")

    client = TestClient(app, raise_server_exceptions=False)

    # Patch environment setting per test invocation
    patcher = patch("core.error_handler.get_settings")
    mocked = patcher.start()
    mocked.return_value.ENVIRONMENT = env

    def fin():
        patcher.stop()

    client._finalizer = fin  # type: ignore[attr-defined]
    return client


def test_validation_error_production():
    client = build_test_app("production")
    resp = client.post("/items", json={"blog_url": "x", "emoji_count": -1})
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["type"] == "validation_error"
    # production should not include validation_errors
    assert "validation_errors" not in data["error"]
    client._finalizer()


def test_validation_error_development():
    client = build_test_app("development")
    resp = client.post("/items", json={"blog_url": "x", "emoji_count": -1})
    assert resp.status_code == 422
    assert "validation_errors" in resp.json()["error"]
    client._finalizer()


def test_invalid_article_url_is_unprocessable():
    client = build_test_app("production")
    resp = client.get("/invalid-url")
    assert resp.status_code == 422
    data = resp.json()
    assert data["error"]["type"] == "domain_error"
    assert data["message"] == "The provided article URL cannot be used"
    assert "details" not in data["error"]
    client._finalizer()


def test_upstream_failure_development_details():
    client = build_test_app("development")
    resp = client.get("/upstream")
    assert resp.status_code == 502
    data = resp.json()
    assert data["error"]["type"] == "domain_error"
    assert data["error"]["details"]["detail"] == "Generation failed for variation 2"
    client._finalizer()


def test_generic_exception_production():
    client = build_test_app("production")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" not in body["error"]
    assert "should_not_leak" not in str(body)
    client._finalizer()


def test_generic_exception_development():
    client = build_test_app("development")
    resp = client.get("/boom")
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"]["type"] == "internal_server_error"
    assert "traceback" in body["error"]
    client._finalizer()


def test_http_error_production():
    client = build_test_app("production")
    resp = client.get("/missing")
    assert resp.status_code == 404
    body = resp.json()
    assert body["error"]["type"] == "http_error"
    assert body["error"]["correlation_id"]
    assert body["success"] is False
    assert "details" not in body["error"]
    client._finalizer()


def test_http_error_development():
    client = build_test_app("development")
    resp = client.get("/missing")
    assert resp.status_code == 404
    assert resp.json()["error"]["details"]["detail"] == "Nope"
    client._finalizer()
