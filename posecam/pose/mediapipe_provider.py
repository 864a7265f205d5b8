from __future__ import annotations

from typing import List

from posecam.pose.base import PoseEstimator
from posecam.pose.skeleton import COCO17_NAMES
from posecam.types import Keypoint, PoseResult


class MediaPipePoseEstimator(PoseEstimator):
	"""
	MediaPipe Pose estimator emitting the COCO-17 keypoint set, single subject.

	Notes:
	- MediaPipe returns normalized coordinates; they are scaled to the input
	  image (the output rectangle) so the overlay transform works in pixels.
	- `visibility` is used as the keypoint score.
	- No landmark smoothing: every frame's result stands on its own.
	"""

	def __init__(
		self,
		model_complexity: int = 1,
		min_detection_confidence: float = 0.5,
		min_tracking_confidence: float = 0.5,
	) -> None:
		try:
			import mediapipe as mp  # type: ignore
		except Exception as e:
			raise RuntimeError("MediaPipe is not installed. Install with: pip install mediapipe") from e

		self._mp = mp
		self._pose = mp.solutions.pose.Pose(
			static_image_mode=False,
			model_complexity=int(model_complexity),
			enable_segmentation=False,
			smooth_landmarks=False,
			min_detection_confidence=float(min_detection_confidence),
			min_tracking_confidence=float(min_tracking_confidence),
		)
		PL = mp.solutions.pose.PoseLandmark
		self._indices = [int(getattr(PL, name.upper())) for name in COCO17_NAMES]

	def name(self) -> str:
		return "mediapipe_pose"

	def infer_rgb(self, rgb) -> PoseResult:
		h, w = int(rgb.shape[0]), int(rgb.shape[1])
		res = self._pose.process(rgb)
		if not res or not getattr(res, "pose_landmarks", None):
			return PoseResult(keypoints=(), backend=self.name())

		lm = res.pose_landmarks.landmark
		keypoints: List[Keypoint] = []
		for name, idx in zip(COCO17_NAMES, self._indices):
			p = lm[idx]
			keypoints.append(
				Keypoint(
					name=name,
					x=float(p.x) * float(w),
					y=float(p.y) * float(h),
					score=float(getattr(p, "visibility", 0.0) or 0.0),
				)
			)
		return PoseResult(keypoints=tuple(keypoints), backend=self.name())

	def close(self) -> None:
		pose = self._pose
		self._pose = None
		if pose is not None:
			pose.close()
