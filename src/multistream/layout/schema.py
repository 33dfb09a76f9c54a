"""Snapshot payload schema

pydantic models for layout snapshots arriving from disk or over HTTP.
Validation covers shape and per-field geometry; cross-slot invariants
(capacity, single focus/audio, duplicates) are checked by the manager on restore.
"""

from typing import Any

from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from ..errors import InvalidSnapshot


class SizeModel(BaseModel):
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class PointModel(BaseModel):
    x: float
    y: float


class RectModel(BaseModel):
    x: float
    y: float
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class SlotModel(BaseModel):
    stream_id: str = Field(min_length=1)
    frame: RectModel
    z_index: int
    is_focused: bool = False
    is_minimized: bool = False
    is_maximized: bool = False
    is_audio_active: bool = False
    manual_frame: RectModel | None = None

    @model_validator(mode="after")
    def _check_flags(self) -> "SlotModel":
        if self.is_minimized and self.is_maximized:
            raise ValueError("slot cannot be both minimized and maximized")
        return self


class PiPModel(BaseModel):
    pip_id: str = Field(min_length=1)
    stream_id: str = Field(min_length=1)
    position: PointModel
    size: SizeModel
    z_index: int
    is_minimized: bool = False
    is_maximized: bool = False
    is_audio_active: bool = False

    @model_validator(mode="after")
    def _check_flags(self) -> "PiPModel":
        if self.is_minimized and self.is_maximized:
            raise ValueError("pip pane cannot be both minimized and maximized")
        return self


class SnapshotModel(BaseModel):
    template_id: str
    container_size: SizeModel
    slots: list[SlotModel] = []
    pip_slots: list[PiPModel] = []
    fullscreen_stream_id: str | None = None

    @field_validator("template_id")
    @classmethod
    def _known_template(cls, value: str) -> str:
        from .templates import TEMPLATES

        if value not in TEMPLATES:
            raise ValueError(f"unknown template: {value}")
        return value


def validate_snapshot_payload(data: dict[str, Any]) -> dict[str, Any]:
    """Validate a raw snapshot dict.

    Returns:
        normalized payload (plain dicts, defaults filled)

    Raises:
        InvalidSnapshot: on any schema violation
    """
    try:
        model = SnapshotModel.model_validate(data)
    except ValidationError as e:
        raise InvalidSnapshot(f"Invalid layout snapshot: {e.error_count()} error(s): {e}") from e
    return model.model_dump()
