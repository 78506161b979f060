"""Agent identity edit configuration."""

from pydantic import BaseModel, Field


class IdentityEditConfig(BaseModel):
    """Rules for bulk agent identity edits and their undo window."""

    undo_window_hours: int = Field(
        default=24,
        gt=0,
        description="Hours after submission during which a batch can be undone",
    )
    conflict_check_retries: int = Field(
        default=1,
        ge=0,
        description="Extra attempts for a failed uniqueness lookup before blocking",
    )
    max_name_length: int = Field(default=100, gt=0, description="Maximum agent name length")
    max_phone_length: int = Field(default=20, gt=0, description="Maximum agent phone length")
    uppercase_names: bool = Field(
        default=True,
        description="Store agent names upper-cased",
    )
    restrict_undo_to_latest: bool = Field(
        default=True,
        description="Refuse to undo a batch whose agents or phones a newer active batch touched",
    )
    default_edited_by: str = Field(
        default="Admin",
        description="Editor recorded when the caller does not name one",
    )
