import sys
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine


def _configure_path() -> None:
    src_path = Path(__file__).resolve().parents[1] / "src"
    if src_path.exists():
        sys.path.insert(0, str(src_path))


_configure_path()

from legends_api.api.dependencies.integrations import get_asset_storage, get_email_backend  # noqa: E402
from legends_api.app import create_app  # noqa: E402
from legends_api.db.base import Base  # noqa: E402
from legends_api.db.session import get_session  # noqa: E402
from legends_api.observability.loyalty import get_loyalty_store  # noqa: E402
from legends_api.services.assets import InMemoryAssetStorage  # noqa: E402
from legends_api.services.notifications import InMemoryEmailBackend  # noqa: E402


async def _build_factory(url: str):
    engine = create_async_engine(url, future=True)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    return engine, async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session_factory():
    engine, factory = await _build_factory("sqlite+aiosqlite:///:memory:")
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def file_session_factory(tmp_path):
    """File-backed database so concurrent sessions get their own connections."""

    engine, factory = await _build_factory(f"sqlite+aiosqlite:///{tmp_path / 'legends.db'}")
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def email_backend() -> InMemoryEmailBackend:
    return InMemoryEmailBackend()


@pytest.fixture
def asset_storage() -> InMemoryAssetStorage:
    return InMemoryAssetStorage()


@pytest.fixture(autouse=True)
def reset_loyalty_store():
    get_loyalty_store().reset()
    yield
    get_loyalty_store().reset()


@pytest_asyncio.fixture
async def app_with_db(session_factory, email_backend, asset_storage):
    app = create_app()

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_email_backend] = lambda: email_backend
    app.dependency_overrides[get_asset_storage] = lambda: asset_storage

    try:
        yield app, session_factory
    finally:
        app.dependency_overrides.clear()
