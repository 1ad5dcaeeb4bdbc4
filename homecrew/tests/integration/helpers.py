"""Request builders shared by the API integration tests."""

from __future__ import annotations

import io
import json
from typing import Any

from fastapi import FastAPI
from PIL import Image

from homecrew.core.config import Settings
from homecrew.main import create_app
from homecrew.store.secrets import InMemorySecretStore

STAFF_FIELDS: dict[str, Any] = {
    "full_legal_name": "Maria Cruz",
    "starting_date": "2024-01-15T00:00:00Z",
    "monthly_salary": "450.00",
    "currency_code": "USD",
    "leaves_allocated": 15,
    "agreed_duties": "Cooking, cleaning",
}


def png_bytes(color: tuple[int, int, int] = (20, 120, 220)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", (8, 8), color).save(buffer, format="PNG")
    return buffer.getvalue()


def staff_form(**overrides: Any) -> dict[str, str]:
    """Multipart form fields for a staff create request."""
    return {"staff": json.dumps({**STAFF_FIELDS, **overrides})}


def build_app(settings: Settings) -> FastAPI:
    app = create_app(settings)
    app.state.container.override("secret_store", InMemorySecretStore())
    return app
