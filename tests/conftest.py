"""
Test infrastructure for the CMS API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's ``get_db`` dependency is overridden so every request uses the
  test session factory rather than the production one.
- The remote media service is replaced by ``FakeMediaClient`` through the
  ``get_media_client`` override.  It runs the same pre-upload checks and
  orientation policy as the real client and records uploads/deletions so
  tests can assert on remote side effects.
- All tables are created fresh before each test and dropped after.
"""
import itertools

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import cms_api.models  # noqa: F401  (registers tables on Base.metadata)
from cms_api.database import Base, get_db, session_scope
from cms_api.dependencies import get_media_client
from cms_api.errors import UpstreamError
from cms_api.main import app
from cms_api.media import ImagePolicy, UploadedImage, check_image, check_orientation
from cms_api.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with session_scope(async_session_test) as session:
        yield session


# ---------------------------------------------------------------------------
# Fake media service
# ---------------------------------------------------------------------------

class FakeMediaClient:
    """
    In-memory stand-in for ``MediaClient``.

    ``next_size`` is the (width, height) the "remote" service reports for
    the next upload; ``fail_uploads`` / ``fail_deletes`` simulate outages.
    """

    def __init__(self) -> None:
        self.next_size: tuple[int, int] = (1600, 900)
        self.fail_uploads = False
        self.fail_deletes = False
        self.uploaded: list[str] = []
        self.deleted: list[str] = []
        self._ids = itertools.count(1)

    async def upload_image(self, data: bytes, content_type: str | None, policy: ImagePolicy) -> UploadedImage:
        check_image(data, content_type, policy)
        if self.fail_uploads:
            raise UpstreamError("Image processing failed")

        width, height = self.next_size
        public_id = f"{policy.folder}/img{next(self._ids)}"
        image = UploadedImage(
            url=f"https://media.test/{public_id}.jpg",
            public_id=public_id,
            width=width,
            height=height,
            format="jpg",
            bytes=len(data),
        )
        self.uploaded.append(public_id)
        try:
            check_orientation(image, policy)
        except Exception:
            await self.delete_image(public_id)
            raise
        return image

    async def delete_image(self, public_id: str) -> None:
        if self.fail_deletes:
            raise UpstreamError("destroy failed")
        self.deleted.append(public_id)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def media() -> FakeMediaClient:
    return FakeMediaClient()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """A live AsyncSession for tests that call services directly."""
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client(media: FakeMediaClient) -> AsyncClient:
    """httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_client] = lambda: media
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

