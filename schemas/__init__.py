"""Pydantic request/response models for API validation and docs."""
from schemas.requests import (
	CameraPayload,
	DebugPayload,
	OrientationPayload,
)
from schemas.responses import (
	CameraResponse,
	DebugResponse,
	OrientationResponse,
)

__all__ = [
	"CameraPayload",
	"DebugPayload",
	"OrientationPayload",
	"CameraResponse",
	"DebugResponse",
	"OrientationResponse",
]
