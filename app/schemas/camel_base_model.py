from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelCaseBaseModel(BaseModel):
    """
    Base for job payloads, API bodies and dispatch results.

    Fields are snake_case in Python and camelCase on the wire. Both spellings
    are accepted on input; `to_wire()` produces the JSON-safe camelCase dict
    stored in Celery messages and task results.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self, exclude_none: bool = False) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=exclude_none)
