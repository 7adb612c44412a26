"""Fixtures for API tests.

ASGITransport does not run the lifespan, so the container is built here
over the migrated temp database and placed on the app state directly.
"""

from collections.abc import AsyncGenerator

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.api.main import create_app
from src.application.services import ServiceContainer, build_services
from src.config import Settings
from src.infrastructure.storage.sqlite import ConnectionPool


@pytest.fixture
async def services(pool: ConnectionPool) -> AsyncGenerator[ServiceContainer, None]:
    container = build_services(Settings(), pool=pool)
    yield container
    await container.dispatcher.stop()


@pytest.fixture
def app(services: ServiceContainer) -> FastAPI:
    application = create_app()
    application.state.services = services
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
