import datetime as dt
import os
import uuid

TEST_DB_URL = "sqlite://:memory:"
os.environ["DATABASE_URL"] = TEST_DB_URL
os.environ.setdefault("JWT_SECRET", "test-secret-key-with-at-least-32-bytes!!")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from tortoise import Tortoise

from notekeep.config import settings
from notekeep.core import db as db_module
from notekeep.core.security import TokenCodec, hash_password
from notekeep.core.storage import LocalFileStorage
from notekeep.main import app
from notekeep.models.note import Note
from notekeep.models.user import User
from notekeep.services.attachments import AttachmentStore
from notekeep.services.auth import Authenticator
from notekeep.services.notes import NoteService

db_module.DB_URL = TEST_DB_URL
db_module.TORTOISE_ORM["connections"]["default"] = TEST_DB_URL

TEST_SECRET = "unit-test-secret-key-0123456789abcdef"


async def _init_test_db() -> None:
    """
    Initialize a clean in-memory SQLite database for every test.
    Ensures tables are recreated from scratch.
    """
    if Tortoise._inited:
        await Tortoise.close_connections()
    await Tortoise.init(config=db_module.TORTOISE_ORM)
    await Tortoise.generate_schemas()


@pytest_asyncio.fixture
async def db():
    """Fresh database for tests that talk to the services directly."""
    await _init_test_db()
    yield
    await Tortoise.close_connections()


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    """Point UPLOAD_DIR at a per-test temporary directory."""
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "upload_dir", str(path))
    return path


@pytest.fixture
def storage(upload_dir):
    return LocalFileStorage(upload_dir)


@pytest.fixture
def store(storage):
    return AttachmentStore(storage)


@pytest.fixture
def note_service(store):
    return NoteService(store)


@pytest.fixture
def codec():
    return TokenCodec(TEST_SECRET)


@pytest.fixture
def authenticator(codec):
    return Authenticator(codec, dt.timedelta(minutes=30))


@pytest_asyncio.fixture
async def client(db, upload_dir):
    """
    Provide an HTTPX AsyncClient bound to the FastAPI app with a fresh DB
    and an empty upload directory.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as async_client:
        yield async_client


@pytest_asyncio.fixture
async def create_user(db):
    """
    Factory fixture to create regular users directly via ORM.
    """

    async def _create_user(username: str | None = None, password: str = "UserPass!23") -> tuple[User, str]:
        username = username or f"user_{uuid.uuid4().hex[:6]}"
        user = await User.create(
            username=username,
            email=f"{username}@example.com",
            password_hash=hash_password(password),
            role="user",
        )
        return user, password

    return _create_user


@pytest_asyncio.fixture
async def create_note(db):
    """
    Factory fixture to create a note owned by a given user.
    """

    async def _create_note(owner: User, title: str = "My note", content: str = "") -> Note:
        return await Note.create(user=owner, title=title, content=content)

    return _create_note


@pytest_asyncio.fixture
async def auth_header_factory(client):
    """
    Helper fixture to obtain Authorization headers via the login endpoint.
    """

    async def _get_headers(username: str, password: str) -> dict[str, str]:
        resp = await client.post(
            "/api/v1/auth/login",
            json={"username": username, "password": password},
        )
        assert resp.status_code == 200, resp.text
        token = resp.json()["data"]["accessToken"]
        return {"Authorization": f"Bearer {token}"}

    return _get_headers
