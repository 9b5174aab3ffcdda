from typing import Any, Mapping, Union

from pydantic import ValidationError

from app.schemas.camel_base_model import CamelCaseBaseModel
from app.schemas.notification_schemas import (
    JOB_PAYLOAD_MODELS,
    JobKind,
    NotificationJob,
)
from app.utils.errors import JobValidationError, UnknownJobKindError


def parse_job_kind(kind: Any) -> JobKind:
    try:
        return JobKind(kind)
    except ValueError:
        raise UnknownJobKindError(kind) from None


def parse_job(
    kind: Any, payload: Union[Mapping[str, Any], CamelCaseBaseModel]
) -> NotificationJob:
    """Validate a kind tag and its payload into a NotificationJob.

    Raises UnknownJobKindError for a tag outside JobKind and JobValidationError
    when the payload is missing required fields or has the wrong shape.
    """
    job_kind = parse_job_kind(kind)
    model = JOB_PAYLOAD_MODELS[job_kind]

    if isinstance(payload, model):
        return NotificationJob(kind=job_kind, payload=payload)
    if isinstance(payload, CamelCaseBaseModel):
        payload = payload.model_dump(by_alias=True)
    if not isinstance(payload, Mapping):
        raise JobValidationError(
            f"Payload for {job_kind.value} must be an object",
            errors=[{"field": "payload", "message": "must be an object"}],
        )

    try:
        return NotificationJob(kind=job_kind, payload=model.model_validate(payload))
    except ValidationError as e:
        raise JobValidationError.from_pydantic(
            e, message=f"Invalid payload for {job_kind.value} job"
        ) from e
