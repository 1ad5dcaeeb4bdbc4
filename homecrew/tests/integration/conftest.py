"""Fixtures for API integration tests.

The app is built with ``create_app`` and driven through httpx's ASGI
transport. Services resolve lazily from the container, so the lifespan
does not need to run.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from typing import Any

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from homecrew.core.config import Settings
from homecrew.tests.integration.helpers import build_app, png_bytes, staff_form


@pytest_asyncio.fixture
async def app(test_settings: Settings) -> AsyncIterator[FastAPI]:
    app = build_app(test_settings)
    yield app
    await app.state.container.shutdown()


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


@pytest.fixture
def create_household(client: AsyncClient) -> Callable[..., Any]:
    async def _create(name: str = "Smith Residence", address: str = "12 Oak St") -> str:
        response = await client.post("/api/households", json={"name": name, "address": address})
        assert response.status_code == 201, response.text
        household_id: str = response.json()["id"]
        return household_id

    return _create


@pytest.fixture
def create_staff(client: AsyncClient) -> Callable[..., Any]:
    async def _create(household_id: str, **overrides: Any) -> dict[str, Any]:
        response = await client.post(
            f"/api/households/{household_id}/staff",
            data=staff_form(**overrides),
            files=[
                ("files", ("passport.pdf", b"%PDF-1.4 passport", "application/pdf")),
                ("files", ("aadhaar_front.png", png_bytes(), "image/png")),
            ],
        )
        assert response.status_code == 201, response.text
        body: dict[str, Any] = response.json()
        return body

    return _create
