import re
from typing import Iterable, Optional, Pattern

from app.config.settings import Settings, settings as default_settings
from app.schemas.notification_schemas import UserRole


class RoleClassifier:
    """
    Deterministic email -> role mapping.

    Student addresses follow the institutional pattern whose first capture group
    is the numeric student id. Teacher addresses are either on the allow-list or
    under the institutional teacher domain. Anything else is unauthorized (None).
    """

    def __init__(
        self,
        student_pattern: str,
        teacher_domain: str,
        teacher_allowlist: Iterable[str] = (),
    ):
        self.student_pattern: Pattern[str] = re.compile(student_pattern)
        self.teacher_suffix = f"@{teacher_domain.lower().lstrip('@')}"
        self.teacher_allowlist = {
            email.strip().lower() for email in teacher_allowlist if email.strip()
        }

    @classmethod
    def from_settings(cls, settings: Settings = default_settings) -> "RoleClassifier":
        return cls(
            student_pattern=settings.STUDENT_EMAIL_PATTERN,
            teacher_domain=settings.TEACHER_EMAIL_DOMAIN,
            teacher_allowlist=settings.TEACHER_EMAIL_ALLOWLIST,
        )

    @staticmethod
    def _normalize(email: Optional[str]) -> str:
        return (email or "").strip().lower()

    def extract_student_id(self, email: Optional[str]) -> Optional[int]:
        match = self.student_pattern.match(self._normalize(email))
        if not match:
            return None
        return int(match.group(1))

    def classify(self, email: Optional[str]) -> Optional[UserRole]:
        normalized = self._normalize(email)
        if not normalized:
            return None

        if self.extract_student_id(normalized) is not None:
            return UserRole.STUDENT

        if normalized in self.teacher_allowlist or normalized.endswith(
            self.teacher_suffix
        ):
            return UserRole.TEACHER

        return None
