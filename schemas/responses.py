"""Pydantic response models for API docs (optional; routes may return dicts)."""
from pydantic import BaseModel


class OrientationResponse(BaseModel):
	"""Response from POST /orientation."""

	orientation: str
	changed: bool


class CameraResponse(BaseModel):
	"""Response from POST /camera/toggle."""

	facing: str


class DebugResponse(BaseModel):
	"""Response from POST /debug/toggle."""

	debug_mode: bool
