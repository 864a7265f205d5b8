"""Live preview routes. Routes: /video/mjpeg, /video/snapshot.jpg."""
import asyncio

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response, StreamingResponse

from deps import get_session
from posecam.preview import MJPEG_BOUNDARY, mjpeg_from_latest
from posecam.session import OverlaySession

router = APIRouter(tags=["video"])

_NO_CACHE = {
	"Cache-Control": "no-store, no-cache, must-revalidate, max-age=0",
	"Pragma": "no-cache",
}


@router.get("/video/mjpeg")
async def video_mjpeg(fps: float = 15.0, session: OverlaySession = Depends(get_session)):
	"""Live MJPEG stream of the camera preview."""
	return StreamingResponse(
		mjpeg_from_latest(session.source.get_latest_jpeg, fps=float(fps)),
		media_type="multipart/x-mixed-replace; boundary=" + MJPEG_BOUNDARY.decode("ascii"),
		headers={**_NO_CACHE, "Connection": "keep-alive"},
	)


@router.get("/video/snapshot.jpg")
async def video_snapshot(session: OverlaySession = Depends(get_session)):
	"""Return a single latest JPEG frame."""
	loop = asyncio.get_running_loop()
	jpeg, _t = await loop.run_in_executor(None, session.source.get_latest_jpeg)
	if jpeg is None:
		raise HTTPException(status_code=404, detail="No JPEG frame available yet")
	return Response(content=jpeg, media_type="image/jpeg", headers=_NO_CACHE)
