from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Type

from pydantic import Field, model_validator

from app.schemas.camel_base_model import CamelCaseBaseModel


class JobKind(str, Enum):
    """Closed set of notification job kinds accepted by the queue."""

    SEND_TO_USER = "send-to-user"
    SEND_TO_USERS = "send-to-users"
    SEND_TO_COURSE = "send-to-course"
    SEND_TO_ROLE = "send-to-role"
    SEND_BATCH = "send-batch"


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"


class DeliveryChannel(str, Enum):
    PUSH = "push"
    EMAIL = "email"


# Job payloads


class NotificationContent(CamelCaseBaseModel):
    title: str = Field(..., min_length=1, description="Notification title / email subject")
    body: str = Field(..., min_length=1, description="Notification body / email message")
    data: Optional[Dict[str, Any]] = Field(
        default=None, description="Extra data forwarded to the push gateway"
    )


class SendToUserPayload(NotificationContent):
    email: str = Field(..., min_length=1)


class SendToUsersPayload(NotificationContent):
    # Duplicates are kept; every entry is notified.
    emails: List[str]


class SendToCoursePayload(NotificationContent):
    course_id: str = Field(..., min_length=1)


class SendToRolePayload(NotificationContent):
    role: UserRole


class BatchNotificationItem(NotificationContent):
    email: str = Field(..., min_length=1)


class SendBatchPayload(CamelCaseBaseModel):
    notifications: List[BatchNotificationItem]


JOB_PAYLOAD_MODELS: Dict[JobKind, Type[CamelCaseBaseModel]] = {
    JobKind.SEND_TO_USER: SendToUserPayload,
    JobKind.SEND_TO_USERS: SendToUsersPayload,
    JobKind.SEND_TO_COURSE: SendToCoursePayload,
    JobKind.SEND_TO_ROLE: SendToRolePayload,
    JobKind.SEND_BATCH: SendBatchPayload,
}


@dataclass(frozen=True)
class NotificationJob:
    """A queued job: the kind tag plus its validated payload."""

    kind: JobKind
    payload: CamelCaseBaseModel

    def to_message(self) -> Dict[str, Any]:
        """Wire form handed to the queue."""
        return {"kind": self.kind.value, "payload": self.payload.to_wire(exclude_none=True)}


# Outcomes


class DeliveryOutcome(CamelCaseBaseModel):
    channel: DeliveryChannel
    success: bool
    error_detail: Optional[str] = None


class TargetResult(CamelCaseBaseModel):
    """Outcome of notifying one target; success when either channel delivered."""

    email: str
    success: bool
    push: Optional[DeliveryOutcome] = None
    email_result: Optional[DeliveryOutcome] = None
    error: Optional[str] = None


class DispatchSummary(CamelCaseBaseModel):
    total: int = 0
    successful: int = 0
    failed: int = 0
    results: List[TargetResult] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_counts(self) -> "DispatchSummary":
        if not (self.total == self.successful + self.failed == len(self.results)):
            raise ValueError(
                "total must equal successful + failed and the number of results"
            )
        return self

    @classmethod
    def empty(cls) -> "DispatchSummary":
        return cls(total=0, successful=0, failed=0, results=[])

    @classmethod
    def from_results(cls, results: Sequence[TargetResult]) -> "DispatchSummary":
        successful = sum(1 for result in results if result.success)
        return cls(
            total=len(results),
            successful=successful,
            failed=len(results) - successful,
            results=list(results),
        )


class JobAccepted(CamelCaseBaseModel):
    job_id: str
    kind: JobKind


# Push token registration


class PushTokenRegistration(CamelCaseBaseModel):
    email: str = Field(..., min_length=1)
    push_token: str = Field(..., min_length=1)


class PushTokenRemoval(CamelCaseBaseModel):
    email: str = Field(..., min_length=1)
