from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON bodies use camelCase; Python attributes stay snake_case."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class StatusResponse(CamelModel):
    success: bool
    message: str | None = None


class HealthResponse(CamelModel):
    status: str
    uptime_seconds: int
    total_messages: int
    online_users: int
    files_stored: int
