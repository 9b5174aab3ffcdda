from dataclasses import dataclass
from typing import List, Sequence, Union

from app.schemas.notification_schemas import UserRole
from app.services.notifications.user_directory import UserDirectory
from app.utils.logging import get_logger

logger = get_logger()


@dataclass(frozen=True)
class SingleRecipient:
    email: str


@dataclass(frozen=True)
class RecipientList:
    emails: Sequence[str]


@dataclass(frozen=True)
class CourseRecipients:
    course_id: str


@dataclass(frozen=True)
class RoleRecipients:
    role: UserRole


RecipientDescriptor = Union[
    SingleRecipient, RecipientList, CourseRecipients, RoleRecipients
]


class TargetResolver:
    """Turns a logical recipient descriptor into the concrete emails to notify.

    Resolution runs at dispatch time, so membership changes made after a job
    was queued are reflected when it is drained.
    """

    def __init__(self, directory: UserDirectory):
        self.directory = directory

    async def resolve(self, descriptor: RecipientDescriptor) -> List[str]:
        if isinstance(descriptor, SingleRecipient):
            return [descriptor.email]
        if isinstance(descriptor, RecipientList):
            # Caller's list is used as-is, duplicates included.
            return list(descriptor.emails)
        if isinstance(descriptor, CourseRecipients):
            return await self.resolve_course(descriptor.course_id)
        if isinstance(descriptor, RoleRecipients):
            return await self.resolve_role(descriptor.role)
        raise TypeError(f"Unsupported recipient descriptor: {descriptor!r}")

    async def resolve_course(self, course_id: str) -> List[str]:
        ranges = await self.directory.get_enrollment_ranges(course_id)
        if not ranges:
            logger.info(f"Course {course_id} has no enrollment ranges")
            return []

        emails = await self.directory.get_student_emails_in_ranges(ranges)
        logger.debug(
            f"Resolved {len(emails)} students for course {course_id} "
            f"from {len(ranges)} enrollment ranges"
        )
        return emails

    async def resolve_role(self, role: UserRole) -> List[str]:
        emails = await self.directory.get_emails_by_role(role)
        logger.debug(f"Resolved {len(emails)} users with role {role.value}")
        return emails
