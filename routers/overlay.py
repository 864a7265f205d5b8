"""Overlay control routes. Routes: /status, /overlay/start, /overlay/stop, /camera/toggle, /debug/toggle, /orientation."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from deps import get_session
from posecam.errors import InvalidLoopState
from posecam.orientation import ManualOrientationMonitor
from posecam.session import OverlaySession
from posecam.types import CameraFacing, Orientation
from schemas.requests import CameraPayload, DebugPayload, OrientationPayload
from schemas.responses import CameraResponse, DebugResponse, OrientationResponse

router = APIRouter(tags=["overlay"])


@router.get("/status")
async def status(session: OverlaySession = Depends(get_session)):
	return session.get_status()


@router.post("/overlay/start")
async def overlay_start(session: OverlaySession = Depends(get_session)):
	"""Start a fresh inference loop (a cancelled loop is never resumed)."""
	try:
		session.start()
	except InvalidLoopState as e:
		raise HTTPException(status_code=409, detail=str(e)) from e
	return {"detail": "Overlay started.", "status": session.get_status()}


@router.post("/overlay/stop")
async def overlay_stop(session: OverlaySession = Depends(get_session)):
	"""Cancel the loop and wait for the cycle in flight to finish."""
	await session.stop()
	return {"detail": "Overlay stopped.", "status": session.get_status()}


@router.post("/camera/toggle", response_model=CameraResponse)
async def camera_toggle(payload: Optional[CameraPayload] = None, session: OverlaySession = Depends(get_session)):
	facing = None
	if payload is not None and payload.facing:
		try:
			facing = CameraFacing.parse(payload.facing)
		except ValueError as e:
			raise HTTPException(status_code=422, detail=str(e)) from e
	return CameraResponse(facing=session.toggle_facing(facing).value)


@router.post("/debug/toggle", response_model=DebugResponse)
async def debug_toggle(payload: Optional[DebugPayload] = None, session: OverlaySession = Depends(get_session)):
	enabled = payload.enabled if payload is not None else None
	return DebugResponse(debug_mode=session.set_debug_mode(enabled))


@router.post("/orientation", response_model=OrientationResponse)
async def set_orientation(payload: OrientationPayload, session: OverlaySession = Depends(get_session)):
	"""Client-reported device orientation (fires the orientation change listeners)."""
	try:
		orientation = Orientation.parse(payload.orientation)
	except ValueError as e:
		raise HTTPException(status_code=422, detail=str(e)) from e
	monitor = session.orientation_monitor
	if not isinstance(monitor, ManualOrientationMonitor):
		raise HTTPException(status_code=409, detail="Orientation is tracked by the device, not settable")
	changed = monitor.set(orientation)
	return OrientationResponse(orientation=orientation.value, changed=changed)
