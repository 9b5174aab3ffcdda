import pytest
from typing import Any, AsyncGenerator, Dict, List, Optional

import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine

from app.db.models import Base, Course, Student, StudentEnrollment, Teacher
from app.db.session import create_session_factory
from app.schemas.notification_schemas import DeliveryChannel, DeliveryOutcome, UserRole
from app.services.notifications.dispatch_service import NotificationDispatchService
from app.services.notifications.roles import RoleClassifier
from app.services.notifications.target_resolver import TargetResolver
from app.services.notifications.user_directory import UserDirectory


STUDENT_PATTERN = r"^u(\d{7})@student\.cuet\.ac\.bd$"


def student_email(student_id: int) -> str:
    return f"u{student_id:07d}@student.cuet.ac.bd"


# Database


@pytest_asyncio.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite so each lookup can open its own connection."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'notifications.db'}", echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return create_session_factory(test_engine)


@pytest.fixture
def role_classifier() -> RoleClassifier:
    return RoleClassifier(
        student_pattern=STUDENT_PATTERN,
        teacher_domain="cuet.ac.bd",
        teacher_allowlist=["guest.lecturer@gmail.com"],
    )


@pytest.fixture
def directory(session_factory, role_classifier) -> UserDirectory:
    return UserDirectory(session_factory, role_classifier)


@pytest.fixture
def resolver(directory) -> TargetResolver:
    return TargetResolver(directory)


@pytest_asyncio.fixture
async def seed(session_factory):
    """Insert rows and return them; expire_on_commit is off so attributes stay readable."""

    async def _seed(*rows):
        async with session_factory() as session:
            session.add_all(rows)
            await session.commit()
        return rows

    return _seed


@pytest_asyncio.fixture
async def sample_course(seed) -> Course:
    (course,) = await seed(Course(code="CSE-101", name="Structured Programming"))
    return course


def make_student(student_id: int, push_token: Optional[str] = None) -> Student:
    return Student(
        email=student_email(student_id),
        name=f"Student {student_id}",
        student_id=student_id,
        batch="21",
        push_token=push_token,
    )


def make_enrollment(course: Course, start_id: int, end_id: int, section: str = "A"):
    return StudentEnrollment(
        course_id=course.id, start_id=start_id, end_id=end_id, section=section
    )


def make_teacher(email: str, push_token: Optional[str] = None) -> Teacher:
    return Teacher(email=email, name=email.split("@")[0], push_token=push_token)


# Test doubles for the dispatch layer


class FakeEmailClient:
    def __init__(self, failing: Optional[set] = None, raising: Optional[set] = None):
        self.failing = failing or set()
        self.raising = raising or set()
        self.sent: List[Dict[str, str]] = []

    async def send(self, to: str, subject: str, message: str) -> DeliveryOutcome:
        if to in self.raising:
            raise RuntimeError(f"email transport exploded for {to}")
        self.sent.append({"to": to, "subject": subject, "message": message})
        if to in self.failing:
            return DeliveryOutcome(
                channel=DeliveryChannel.EMAIL, success=False, error_detail="HTTP 500"
            )
        return DeliveryOutcome(channel=DeliveryChannel.EMAIL, success=True)


class FakePushClient:
    def __init__(self, failing_tokens: Optional[set] = None):
        self.failing_tokens = failing_tokens or set()
        self.sent: List[Dict[str, Any]] = []

    async def send(self, token, title, body, data=None) -> DeliveryOutcome:
        self.sent.append({"token": token, "title": title, "body": body, "data": data})
        if token in self.failing_tokens:
            return DeliveryOutcome(
                channel=DeliveryChannel.PUSH,
                success=False,
                error_detail="DeviceNotRegistered",
            )
        return DeliveryOutcome(channel=DeliveryChannel.PUSH, success=True)


class FakeDirectory:
    """In-memory stand-in for UserDirectory."""

    def __init__(
        self,
        tokens: Optional[Dict[str, str]] = None,
        lookup_errors: Optional[set] = None,
    ):
        self.tokens = tokens or {}
        self.lookup_errors = lookup_errors or set()
        self.token_lookups: List[str] = []

    async def get_push_token(self, email: str) -> Optional[str]:
        self.token_lookups.append(email)
        if email in self.lookup_errors:
            raise ConnectionError("datastore unreachable")
        return self.tokens.get(email)


class FakeResolver:
    def __init__(
        self,
        course_emails: Optional[Dict[str, List[str]]] = None,
        role_emails: Optional[Dict[UserRole, List[str]]] = None,
    ):
        self.course_emails = course_emails or {}
        self.role_emails = role_emails or {}
        self.resolved: List[Any] = []

    async def resolve(self, descriptor) -> List[str]:
        self.resolved.append(descriptor)
        if hasattr(descriptor, "course_id"):
            return list(self.course_emails.get(descriptor.course_id, []))
        return list(self.role_emails.get(descriptor.role, []))


class RecordingSleep:
    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def email_client() -> FakeEmailClient:
    return FakeEmailClient()


@pytest.fixture
def push_client() -> FakePushClient:
    return FakePushClient()


@pytest.fixture
def fake_directory() -> FakeDirectory:
    return FakeDirectory()


@pytest.fixture
def fake_resolver() -> FakeResolver:
    return FakeResolver()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def dispatcher(
    fake_resolver, fake_directory, push_client, email_client, recording_sleep
) -> NotificationDispatchService:
    return NotificationDispatchService(
        resolver=fake_resolver,
        directory=fake_directory,
        push_client=push_client,
        email_client=email_client,
        chunk_size=100,
        chunk_delay_seconds=1.0,
        sleep=recording_sleep,
    )
