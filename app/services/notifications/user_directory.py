from typing import List, Optional, Type, Union

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.db.models import Student, StudentEnrollment, Teacher
from app.schemas.notification_schemas import UserRole
from app.services.notifications.roles import RoleClassifier
from app.utils.logging import get_logger

logger = get_logger()

UserModel = Union[Type[Student], Type[Teacher]]


class UserDirectory:
    """Datastore lookups used by the notification pipeline.

    Every call opens its own short-lived session so lookups issued concurrently
    from a fan-out never share one.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        role_classifier: RoleClassifier,
    ):
        self.session_factory = session_factory
        self.role_classifier = role_classifier

    @staticmethod
    def _model_for(role: UserRole) -> UserModel:
        return Teacher if role == UserRole.TEACHER else Student

    async def get_push_token(self, email: str) -> Optional[str]:
        """Stored push token for the user behind ``email``; None when absent or unclassifiable."""
        role = self.role_classifier.classify(email)
        if role is None:
            return None

        model = self._model_for(role)
        async with self.session_factory() as session:
            result = await session.execute(
                select(model.push_token).where(model.email == email)
            )
            token = result.scalar_one_or_none()

        return token or None

    async def save_push_token(self, email: str, push_token: str) -> bool:
        return await self._write_push_token(email, push_token)

    async def remove_push_token(self, email: str) -> bool:
        return await self._write_push_token(email, None)

    async def _write_push_token(self, email: str, push_token: Optional[str]) -> bool:
        # Last write wins; no version check.
        role = self.role_classifier.classify(email)
        if role is None:
            logger.warning(f"Refusing push token update for unclassified email {email}")
            return False

        model = self._model_for(role)
        async with self.session_factory() as session:
            result = await session.execute(
                update(model).where(model.email == email).values(push_token=push_token)
            )
            await session.commit()

        return result.rowcount > 0

    async def get_emails_by_role(self, role: UserRole) -> List[str]:
        model = self._model_for(role)
        async with self.session_factory() as session:
            result = await session.execute(select(model.email).order_by(model.email))
            return list(result.scalars().all())

    async def get_enrollment_ranges(self, course_id: str) -> List[StudentEnrollment]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(StudentEnrollment)
                .where(StudentEnrollment.course_id == course_id)
                .order_by(StudentEnrollment.start_id)
            )
            return list(result.scalars().all())

    async def get_student_emails_in_ranges(
        self, ranges: List[StudentEnrollment]
    ) -> List[str]:
        """Emails of existing students whose id falls in any of the closed ranges."""
        if not ranges:
            return []

        conditions = [
            Student.student_id.between(enrollment.start_id, enrollment.end_id)
            for enrollment in ranges
        ]
        async with self.session_factory() as session:
            result = await session.execute(
                select(Student.email)
                .where(or_(*conditions))
                .order_by(Student.student_id)
            )
            return list(result.scalars().all())
