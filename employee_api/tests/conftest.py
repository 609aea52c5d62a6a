# tests/conftest.py
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from employee_api.config import Settings
from employee_api.database import create_db_and_tables
from employee_api.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
GIF_BYTES = b"GIF89a" + b"\x01" * 64


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        secret_key="test-secret",
        upload_dir=str(tmp_path / "uploads"),
    )
    values.update(overrides)
    return Settings(**values)


def employee_fields(**overrides) -> dict:
    fields = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": "ada@acme.io",
        "position": "Senior Engineer",
        "department": "Engineering",
        "salary": "95000",
        "date_of_joining": "2021-03-15",
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest_asyncio.fixture
async def app(settings):
    app = create_app(settings)
    await create_db_and_tables(app.state.engine)
    yield app
    await app.state.engine.dispose()


@pytest_asyncio.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def user_client(client: AsyncClient):
    """A client that has signed up, logged in and sends the bearer token."""
    await client.post(
        "/api/v1/user/signup",
        json={"username": "ada", "email": "ada.user@acme.io", "password": "s3cret!"}
    )
    response = await client.post(
        "/api/v1/user/login",
        json={"username": "ada", "password": "s3cret!"}
    )
    token = response.json()["jwt_token"]
    client.headers["Authorization"] = f"Bearer {token}"
    return client


@pytest.fixture
def upload_dir(settings):
    return settings.upload_dir
