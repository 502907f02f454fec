"""
Campusdesk - Test Configuration and Fixtures
"""
import os
import tempfile
from typing import AsyncGenerator, Dict, List, Optional
from uuid import UUID

import pytest
from faker import Faker
from httpx import ASGITransport, AsyncClient

# Set testing environment before the application is imported
UPLOAD_ROOT = tempfile.mkdtemp(prefix="campusdesk-uploads-")
os.environ["ENVIRONMENT"] = "testing"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./campusdesk-test.db"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LLM_PROVIDER"] = "mock"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["UPLOAD_DIR"] = UPLOAD_ROOT
os.environ["JWT_SECRET"] = "test-access-secret"
os.environ["JWT_REFRESH_SECRET"] = "test-refresh-secret"
os.environ["ZILLIZ_URI"] = ""
os.environ["ZILLIZ_API_KEY"] = ""
os.environ["SMTP_USER"] = ""
os.environ["SMTP_PASSWORD"] = ""

from campusdesk.main import app
from campusdesk.config import UserRole
from campusdesk.complaints.application import IMailer, IRealtimeSink, NotificationDispatcher
from campusdesk.complaints.domain import Category
from campusdesk.complaints.infrastructure import SQLAlchemyCategoryRepository
from campusdesk.complaints.interfaces.dependencies import get_attachment_storage
from campusdesk.core import UnextractableDocument
from campusdesk.identity.domain import User
from campusdesk.identity.infrastructure import SQLAlchemyUserRepository
from campusdesk.identity.interfaces.dependencies import password_hasher, token_service
from campusdesk.infrastructure.database import (
    close_database,
    create_tables,
    get_session_context,
    init_database,
)
from campusdesk.infrastructure.email import EmailMessage
from campusdesk.infrastructure.llm import MockLLMClient
from campusdesk.infrastructure.storage import LocalFileStorage
from campusdesk.infrastructure.vectorstore import IVectorStore, SearchResult, VectorRecord
from campusdesk.knowledge.application import ITextExtractor
from campusdesk.knowledge.interfaces.dependencies import get_knowledge_storage

fake = Faker()

PASSWORD = "secret123"


# ========== Fakes ==========

class FakeRealtimeSink(IRealtimeSink):
    """Records every emitted event."""

    def __init__(self, fail: bool = False):
        self.events: List[Dict] = []
        self.fail = fail

    async def emit(self, room: str, event: str, data: dict) -> int:
        if self.fail:
            raise RuntimeError("socket layer down")
        self.events.append({"room": room, "event": event, "data": data})
        return 1

    def rooms(self) -> List[str]:
        return [e["room"] for e in self.events]

    def for_room(self, room: str) -> List[Dict]:
        return [e for e in self.events if e["room"] == room]


class FakeMailer(IMailer):
    """Records every message; optionally fails."""

    def __init__(self, fail: bool = False):
        self.sent: List[EmailMessage] = []
        self.fail = fail

    async def send(self, message: EmailMessage) -> bool:
        if self.fail:
            raise RuntimeError("smtp down")
        self.sent.append(message)
        return True


class FakeVectorStore(IVectorStore):
    """In-memory vector index."""

    def __init__(self, configured: bool = True):
        self.records: Dict[str, VectorRecord] = {}
        self.configured = configured
        self.fail_delete = False
        self.fail_search = False

    @property
    def is_configured(self) -> bool:
        return self.configured

    async def initialize(self) -> None:
        return None

    async def upsert(self, records: List[VectorRecord]) -> None:
        for record in records:
            self.records[record.id] = record

    async def search(self, query_embedding: List[float], top_k: int = 5) -> List[SearchResult]:
        if self.fail_search:
            raise RuntimeError("index unreachable")
        return [
            SearchResult(content=r.text, metadata=dict(r.metadata), score=1.0, id=r.id)
            for r in list(self.records.values())[:top_k]
        ]

    async def delete(self, ids: List[str]) -> None:
        if self.fail_delete:
            raise RuntimeError("index unreachable")
        for vector_id in ids:
            self.records.pop(vector_id, None)


class FakeTextExtractor(ITextExtractor):
    """Returns preset text instead of parsing a PDF."""

    def __init__(self, text: str = ""):
        self.text = text

    async def extract(self, content: bytes, name: str) -> str:
        if content.startswith(b"not-a-pdf"):
            raise UnextractableDocument(name)
        return self.text


# ========== Database ==========

@pytest.fixture
async def database(tmp_path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test."""
    init_database(f"sqlite+aiosqlite:///{tmp_path}/campusdesk.db")
    await create_tables()
    yield
    await close_database()


# ========== Application ==========

@pytest.fixture
def realtime_sink() -> FakeRealtimeSink:
    return FakeRealtimeSink()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def vector_store() -> FakeVectorStore:
    return FakeVectorStore()


@pytest.fixture
def dispatcher(realtime_sink, mailer) -> NotificationDispatcher:
    return NotificationDispatcher(realtime_sink, mailer)


@pytest.fixture
async def client(database, tmp_path, dispatcher, vector_store) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with fakes for every external service."""
    app.state.notification_dispatcher = dispatcher
    app.state.llm_client = MockLLMClient()
    app.state.vector_store = vector_store

    app.dependency_overrides[get_attachment_storage] = lambda: LocalFileStorage(tmp_path / "uploads")
    app.dependency_overrides[get_knowledge_storage] = lambda: LocalFileStorage(tmp_path / "uploads", "knowledge")

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await dispatcher.drain(timeout=5)
    app.dependency_overrides.clear()


# ========== Users and categories ==========

async def create_user(
    role: UserRole = UserRole.STUDENT,
    name: Optional[str] = None,
    email: Optional[str] = None,
    assigned_category_id: Optional[UUID] = None,
) -> User:
    async with get_session_context() as session:
        users = SQLAlchemyUserRepository(session)
        user = await users.add(User(
            name=name or fake.name(),
            email=email or fake.unique.email(),
            role=role,
            password_hash=password_hasher.hash(PASSWORD),
            assigned_category_id=assigned_category_id,
        ))
        if assigned_category_id is not None:
            await SQLAlchemyCategoryRepository(session).bind_staff(assigned_category_id, user.id)
        return user


async def create_category(name: Optional[str] = None, description: str = "") -> Category:
    async with get_session_context() as session:
        return await SQLAlchemyCategoryRepository(session).add(
            Category(name=name or fake.unique.word().title(), description=description)
        )


def bearer(user: User) -> dict:
    return {"Authorization": f"Bearer {token_service.issue_access_token(user)}"}


@pytest.fixture
def make_user(database):
    """Factory for persisted users."""
    return create_user


@pytest.fixture
def make_category(database):
    """Factory for persisted categories."""
    return create_category


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user."""
    return bearer


@pytest.fixture
def extractor() -> FakeTextExtractor:
    return FakeTextExtractor()


@pytest.fixture
async def category(database) -> Category:
    return await create_category("Dormitory Issues", "Housing problems")


@pytest.fixture
async def student(database) -> User:
    return await create_user(UserRole.STUDENT)


@pytest.fixture
async def other_student(database) -> User:
    return await create_user(UserRole.STUDENT)


@pytest.fixture
async def admin(database) -> User:
    return await create_user(UserRole.ADMIN)


@pytest.fixture
async def staff(category) -> User:
    return await create_user(UserRole.CATEGORY_STAFF, assigned_category_id=category.id)


@pytest.fixture
async def other_staff(database) -> User:
    other = await create_category("Internet & Network")
    return await create_user(UserRole.CATEGORY_STAFF, assigned_category_id=other.id)
