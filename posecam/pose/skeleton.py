from __future__ import annotations

from typing import List, Tuple


COCO17_NAMES = [
	"nose",
	"left_eye",
	"right_eye",
	"left_ear",
	"right_ear",
	"left_shoulder",
	"right_shoulder",
	"left_elbow",
	"right_elbow",
	"left_wrist",
	"right_wrist",
	"left_hip",
	"right_hip",
	"left_knee",
	"right_knee",
	"left_ankle",
	"right_ankle",
]

# Adjacent joint pairs of the single-pose COCO-17 skeleton (MoveNet layout).
COCO17_EDGES: List[Tuple[str, str]] = [
	("nose", "left_eye"),
	("nose", "right_eye"),
	("left_eye", "left_ear"),
	("right_eye", "right_ear"),
	("left_shoulder", "right_shoulder"),
	("left_shoulder", "left_elbow"),
	("left_shoulder", "left_hip"),
	("right_shoulder", "right_elbow"),
	("right_shoulder", "right_hip"),
	("left_elbow", "left_wrist"),
	("right_elbow", "right_wrist"),
	("left_hip", "right_hip"),
	("left_hip", "left_knee"),
	("right_hip", "right_knee"),
	("left_knee", "left_ankle"),
	("right_knee", "right_ankle"),
]
