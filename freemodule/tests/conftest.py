"""
Shared fixtures: one throwaway app per test, backed by a SQLite file and an
upload directory under tmp_path.
"""
import os

os.environ.setdefault("JWT_SECRET", "module-import-secret")

from pathlib import Path
from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from freemodule.config.settings import Settings
from freemodule.main import create_app
from freemodule.security.rate_limit import limiter

TEST_SECRET = "test-signing-secret"
PASSWORD = "correct-horse-42"
PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"


def make_settings(tmp_path: Path, **overrides) -> Settings:
    values = dict(
        environment="test",
        jwt_secret=TEST_SECRET,
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        upload_dir=str(tmp_path / "uploads"),
        bcrypt_rounds=4,
        rate_limit_enabled=False,
        db_pool_size=5,
        db_max_overflow=5,
    )
    values.update(overrides)
    return Settings(**values)


async def start_app(settings: Settings):
    limiter.reset()
    app = create_app(settings)
    app.state.files.ensure_directory()
    await app.state.db.create_all()
    return app


async def stop_app(app) -> None:
    await app.state.db.dispose()
    app.state.passwords.shutdown()
    limiter.reset()


def make_client(app) -> AsyncClient:
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings):
    app = await start_app(settings)
    yield app
    await stop_app(app)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    async with make_client(app) as client:
        yield client


@pytest.fixture
def upload_dir(app) -> Path:
    return app.state.files.root


def stored_files(directory: Path) -> list:
    return sorted(p.name for p in directory.iterdir())


async def register_and_login(client: AsyncClient, name: str, email: str, password: str = PASSWORD) -> dict:
    response = await client.post("/auth/register", json={"name": name, "email": email, "password": password})
    assert response.status_code == 201, response.text
    user = response.json()

    response = await client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    token = response.json()["token"]
    return {
        "id": user["id"],
        "name": user["name"],
        "email": email,
        "token": token,
        "headers": {"Authorization": f"Bearer {token}"},
    }


@pytest_asyncio.fixture
async def alice(client) -> dict:
    return await register_and_login(client, "Alice Reyes", "alice@ustp.edu.ph")


@pytest_asyncio.fixture
async def bob(client) -> dict:
    return await register_and_login(client, "Bob Santos", "bob@ustp.edu.ph")


async def upload_note(
    client: AsyncClient,
    user: dict,
    title: str = "Data Structures Week 1",
    description: Optional[str] = "Linked lists and stacks",
    content: bytes = PDF_BYTES,
    filename: str = "week1.pdf",
    content_type: str = "application/pdf",
    subject_id: Optional[int] = None,
):
    data = {"title": title}
    if description is not None:
        data["description"] = description
    if subject_id is not None:
        data["subject_id"] = str(subject_id)
    return await client.post(
        "/notes/upload",
        data=data,
        files={"file": (filename, content, content_type)},
        headers=user["headers"],
    )


@pytest_asyncio.fixture
async def note(client, alice) -> dict:
    response = await upload_note(client, alice)
    assert response.status_code == 201, response.text
    return response.json()
