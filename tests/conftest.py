"""
Pytest configuration and shared fixtures
"""

import heapq
import itertools
import os
from typing import AsyncGenerator, Callable, List, Tuple

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("ENV", "testing")
os.environ.setdefault("LOG_FORMAT", "text")

from botdetect.collector.clock import Clock, TimerHandle  # noqa: E402
from botdetect.collector.transport import Transport  # noqa: E402
from botdetect.main import app, rate_limiter  # noqa: E402
from botdetect.models import Base  # noqa: E402


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


class _ManualHandle(TimerHandle):
    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualClock(Clock):
    """advance()로만 시간이 흐르는 테스트용 시계"""

    def __init__(self, start_ms: int = 1_700_000_000_000):
        self.current = start_ms
        self._queue: List[Tuple[int, int, Callable[[], None], _ManualHandle]] = []
        self._seq = itertools.count()

    def now_ms(self) -> int:
        return self.current

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle:
        handle = _ManualHandle()
        heapq.heappush(
            self._queue, (self.current + delay_ms, next(self._seq), callback, handle)
        )
        return handle

    def advance(self, ms: int) -> None:
        """ms만큼 시간을 진행하며 만기된 콜백을 순서대로 실행"""
        target = self.current + ms
        while self._queue and self._queue[0][0] <= target:
            due, _, callback, handle = heapq.heappop(self._queue)
            self.current = due
            if not handle.cancelled:
                callback()
        self.current = target

    @property
    def pending(self) -> int:
        return sum(1 for entry in self._queue if not entry[3].cancelled)


class RecordingTransport(Transport):
    """전송 본문을 기록하는 전송 수단"""

    def __init__(self, accept: bool = True):
        self.accept = accept
        self.sent: List[Tuple[str, str]] = []

    def send(self, url: str, body: str) -> bool:
        self.sent.append((url, body))
        return self.accept


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def beacon() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def fallback() -> RecordingTransport:
    return RecordingTransport()


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Create a fresh database session for each test.

    Uses in-memory SQLite database for fast test execution.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session_factory() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create an async HTTP client for testing FastAPI endpoints.
    Override the database dependency to use the test database.
    """
    from botdetect.database import get_db

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    rate_limiter.memory_store.clear()

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
