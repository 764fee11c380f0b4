"""Shared fixtures: an app on a throwaway SQLite database with a stub generator."""

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from taleforger.api.main import create_app
from taleforger.core.config import Settings
from taleforger.generation import GenerationRequest


class StubGeneration:
    """Deterministic stand-in for the Gemini client.

    Queued steps are consumed one per attempt; each is text to return or an
    exception to raise. With the queue empty every attempt returns ``default``.
    """

    def __init__(self, default: str = "Once upon a time...") -> None:
        self.default = default
        self.steps: list = []
        self.requests: list[GenerationRequest] = []

    def queue(self, *steps) -> None:
        self.steps.extend(steps)

    async def __call__(self, request: GenerationRequest) -> str | None:
        self.requests.append(request)
        step = self.steps.pop(0) if self.steps else self.default
        if isinstance(step, BaseException):
            raise step
        return step


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'taleforger.db'}",
        database_create_tables=True,
        gemini_api_key="",
        generation_base_delay_seconds=0.0,
        log_level="WARNING",
    )


@pytest.fixture
def generation() -> StubGeneration:
    return StubGeneration()


@pytest.fixture
def client(settings: Settings, generation: StubGeneration) -> Iterator[TestClient]:
    app = create_app(settings, generation_call=generation)
    with TestClient(app) as c:
        yield c


def register(client: TestClient, username: str = "ada", email: str | None = None) -> dict:
    """Register a user and return the auth response body."""
    response = client.post(
        "/api/auth/register",
        json={
            "username": username,
            "email": email or f"{username}@example.com",
            "password": "s3cret-passphrase",
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


def auth_headers(body: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {body['token']}"}


@pytest.fixture
def user_headers(client: TestClient) -> dict[str, str]:
    return auth_headers(register(client))
