"""App wired to the in-memory fakes, shared by REST and WebSocket tests."""
from __future__ import annotations

from typing import Any

import jwt
import pytest
from fastapi.testclient import TestClient

from hr_chat.app import create_app
from hr_chat.config import settings


def make_token(user_id: int, **claims: Any) -> str:
    return jwt.encode(
        {"sub": str(user_id), "roles": ["employee"], **claims},
        settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
    )


def auth(user_id: int) -> dict[str, str]:
    return {"Authorization": f"Bearer {make_token(user_id)}"}


def receive_kind(ws, kind: str) -> dict[str, Any]:
    """Read frames until one of ``kind`` arrives."""
    while True:
        frame = ws.receive_json()
        if frame["kind"] == kind:
            return frame


@pytest.fixture
def app(uow_factory, tmp_path):
    return create_app(uow_factory=uow_factory, upload_dir=tmp_path)


@pytest.fixture
def client(app):
    # One portal for the whole test so sockets and REST calls share the hub's loop.
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c
