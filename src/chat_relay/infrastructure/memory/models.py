"""Wire/snapshot shapes for ledger records (camelCase JSON)."""
from __future__ import annotations

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, TypeAdapter, computed_field
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class AttachmentRefRecord(_CamelModel):
    id: str = Field(min_length=1)
    mime_type: str
    display_name: str
    size: int = Field(default=0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def url(self) -> str:
        return f"/api/file/{self.id}"


class MessageRecord(_CamelModel):
    id: str = Field(pattern=r"^\d+$")
    timestamp: AwareDatetime
    author: str = Field(min_length=1)
    body: str = Field(min_length=1)
    attachment: AttachmentRefRecord | None = None
    reply_to: str | None = None


SnapshotAdapter = TypeAdapter(list[MessageRecord])
