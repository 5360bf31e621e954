"""Shared test fixtures for pytest.

ENVIRONMENT is forced to ``test`` before the app is imported so settings
load without an env file and without an OpenAI key.
"""

import os
from collections.abc import AsyncGenerator, Callable, Generator

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient


os.environ["ENVIRONMENT"] = "test"

from core.config import Settings
from dependencies.generation import (
    get_enhancer,
    get_generation_backend,
    get_scraper,
)
from fakes import FakeBackend, FakeEnhancer, FakeScraper
from main import app
from schemas.generation import GenerationRequest


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """
    Create a test client for the FastAPI application.
    """
    with TestClient(app) as client:
        yield client


@pytest.fixture
def settings() -> Settings:
    """Settings with defaults only, independent of the process env file."""
    return Settings(_env_file=None, ENVIRONMENT="test")  # type: ignore[call-arg]


@pytest.fixture
def request_model() -> GenerationRequest:
    return GenerationRequest(
        blog_url="https://example.com/blog/example-post",
        company_name="Example Co.",
        company_url="https://example.com",
        selected_images=[
            "https://example.com/img/1.jpg",
            "https://example.com/img/2.jpg",
        ],
        use_web_search=False,
    )


@pytest.fixture
def override_pipeline() -> Generator[
    Callable[..., tuple[FakeScraper, FakeBackend, FakeEnhancer]], None, None
]:
    """Install fake collaborators on the app; returns the installer."""

    def install(
        scraper: FakeScraper | None = None,
        backend: FakeBackend | None = None,
        enhancer: FakeEnhancer | None = None,
    ) -> tuple[FakeScraper, FakeBackend, FakeEnhancer]:
        scraper = scraper or FakeScraper()
        backend = backend or FakeBackend()
        enhancer = enhancer or FakeEnhancer()
        app.dependency_overrides[get_scraper] = lambda: scraper
        app.dependency_overrides[get_generation_backend] = lambda: backend
        app.dependency_overrides[get_enhancer] = lambda: enhancer
        return scraper, backend, enhancer

    yield install
    for dependency in (get_scraper, get_generation_backend, get_enhancer):
        app.dependency_overrides.pop(dependency, None)


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Async client bound to the ASGI app (no network)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client
