"""Pydantic request body models for the overlay control endpoints."""
from typing import Optional

from pydantic import BaseModel, Field


class OrientationPayload(BaseModel):
	"""Request body for POST /orientation. Reported by the viewing client."""

	orientation: str = Field(..., description="portrait_up, portrait_down, landscape_left or landscape_right")


class CameraPayload(BaseModel):
	"""Request body for POST /camera/toggle. Omit facing to flip to the other camera."""

	facing: Optional[str] = Field(None, description="'front' or 'back'")


class DebugPayload(BaseModel):
	"""Request body for POST /debug/toggle. Omit enabled to flip the current value."""

	enabled: Optional[bool] = Field(None, description="Show keypoints and skeleton")
