from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from posecam.config import AppConfig
from posecam.errors import InvalidLoopState
from posecam.loop import InferenceLoop
from posecam.orientation import ManualOrientationMonitor, OrientationMonitor
from posecam.platform import resolve_profile
from posecam.pose.base import PoseEstimator
from posecam.presenter import OverlayPresenter
from posecam.scheduler import AsyncioFrameScheduler, FrameScheduler
from posecam.sources.base import FrameSource
from posecam.transform import CoordinateTransform
from posecam.types import CameraFacing, LoopState, Orientation, OverlaySnapshot

logger = logging.getLogger(__name__)


class OverlaySession:
	"""
	Application controller: wires the collaborators around one InferenceLoop at
	a time and turns every published snapshot into presenter calls.

	Owns the user-facing toggles (camera facing, debug overlay) and keeps the
	frame source's output size/rotation in step with the device orientation.
	"""

	def __init__(
		self,
		cfg: AppConfig,
		*,
		source: FrameSource,
		estimator: PoseEstimator,
		presenter: OverlayPresenter,
		orientation: OrientationMonitor,
		scheduler_factory: Optional[Callable[[], FrameScheduler]] = None,
	) -> None:
		self._cfg = cfg
		self._source = source
		self._estimator = estimator
		self._presenter = presenter
		self._orientation = orientation
		self._scheduler_factory = scheduler_factory or (lambda: AsyncioFrameScheduler(cfg.loop.refresh_hz))

		profile = resolve_profile(cfg.platform.family)
		self.transform = CoordinateTransform(
			profile=profile,
			output_rect=profile.nominal_output_rect(cfg.overlay.output_tensor_width),
			preview_rect=profile.preview_rect(cfg.camera.preview_width, cfg.camera.preview_height),
			min_score=cfg.overlay.min_keypoint_score,
		)
		self.facing = CameraFacing.parse(cfg.camera.initial_facing)
		self.debug_mode: bool = bool(cfg.overlay.debug_mode)
		self.loop: Optional[InferenceLoop] = None
		self.last_error: Optional[str] = None

		self._source.set_facing(self.facing)
		self._apply_geometry()
		self._unsubscribe = self._orientation.subscribe(self._on_orientation)

	@property
	def orientation(self) -> Orientation:
		return self._orientation.current()

	@property
	def orientation_monitor(self) -> OrientationMonitor:
		return self._orientation

	@property
	def source(self) -> FrameSource:
		return self._source

	@property
	def running(self) -> bool:
		return self.loop is not None and self.loop.state is LoopState.RUNNING

	def _apply_geometry(self) -> None:
		o = self.orientation
		rect = self.transform.effective_output_rect(o)
		rotation = self.transform.texture_rotation(o, self.facing)
		self._source.set_output_geometry(rect, rotation)

	def _on_orientation(self, orientation: Orientation) -> None:
		self._apply_geometry()

	def start(self) -> InferenceLoop:
		"""Start a fresh loop. Requires a running event loop."""
		if self.running:
			raise InvalidLoopState("overlay loop already running")
		if self.loop is not None and self.loop.inflight:
			# Keeps estimator calls single-flight across loop instances.
			raise InvalidLoopState("previous loop is still finishing its last cycle")
		self.last_error = None
		loop = InferenceLoop(
			self._source,
			self._estimator,
			self._scheduler_factory(),
			on_update=self._on_update,
			on_fatal=self._on_fatal,
			auto_render=self._cfg.overlay.auto_render,
		)
		self.loop = loop
		loop.start()
		return loop

	async def stop(self) -> None:
		if self.loop is not None:
			await self.loop.aclose()

	async def close(self) -> None:
		await self.stop()
		self._unsubscribe()
		self._source.close()
		self._estimator.close()
		logger.info("[Session] closed")

	def toggle_facing(self, facing: Optional[CameraFacing] = None) -> CameraFacing:
		self.facing = facing if facing is not None else self.facing.toggled()
		self._source.set_facing(self.facing)
		self._apply_geometry()
		logger.info("[Session] camera facing -> %s", self.facing.value)
		return self.facing

	def set_debug_mode(self, enabled: Optional[bool] = None) -> bool:
		self.debug_mode = (not self.debug_mode) if enabled is None else bool(enabled)
		return self.debug_mode

	def _on_update(self, snapshot: OverlaySnapshot) -> None:
		if self.debug_mode:
			o = self.orientation
			points = self.transform.visible_points(snapshot.pose, o, self.facing)
			edges = self.transform.skeleton_edges(snapshot.pose, o, self.facing)
		else:
			points, edges = [], []
		self._presenter.render(edges, points)
		self._presenter.render_fps(snapshot.fps)

	def _on_fatal(self, exc: BaseException) -> None:
		self.last_error = repr(exc)
		logger.error("[Session] overlay stopped: %s", exc)

	def get_status(self) -> Dict[str, Any]:
		o = self.orientation
		return {
			"platform": self.transform.profile.family.value,
			"orientation": o.value,
			"facing": self.facing.value,
			"debug_mode": self.debug_mode,
			"output_rect": self.transform.effective_output_rect(o).as_list(),
			"preview_rect": self.transform.oriented_preview_rect(o).as_list(),
			"texture_rotation": self.transform.texture_rotation(o, self.facing),
			"loop": self.loop.get_status() if self.loop is not None else {"state": LoopState.IDLE.value},
			"source": self._source.get_status(),
			"error": self.last_error,
		}


def build_default_session(cfg: AppConfig, presenter: OverlayPresenter) -> OverlaySession:
	"""OpenCV camera + MediaPipe model + client-reported orientation."""
	from posecam.pose.mediapipe_provider import MediaPipePoseEstimator
	from posecam.sources.opencv_source import OpenCvFrameSource

	source = OpenCvFrameSource(
		{CameraFacing.FRONT: cfg.camera.front_source, CameraFacing.BACK: cfg.camera.back_source},
		flip_input=cfg.camera.flip_input,
		auto_render=cfg.overlay.auto_render,
		jpeg_quality=cfg.camera.jpeg_quality,
	)
	estimator = MediaPipePoseEstimator(
		model_complexity=cfg.pose.model_complexity,
		min_detection_confidence=cfg.pose.min_detection_confidence,
		min_tracking_confidence=cfg.pose.min_tracking_confidence,
	)
	return OverlaySession(
		cfg,
		source=source,
		estimator=estimator,
		presenter=presenter,
		orientation=ManualOrientationMonitor(),
	)
