from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union

from posecam.platform import PlatformFamily
from posecam.types import CameraFacing


@dataclass(frozen=True)
class OverlayConfig:
	# Keypoints at or below this score are not drawn; edges need both ends >= it.
	min_keypoint_score: float = 0.3
	# Nominal output (model input) width; height follows the platform aspect ratio.
	output_tensor_width: int = 180
	# When false the loop pushes the preview itself after every cycle.
	auto_render: bool = True
	debug_mode: bool = True


@dataclass(frozen=True)
class PlatformConfig:
	family: str = "A"  # A: texture follows device rotation / B: capture must rotate


@dataclass(frozen=True)
class CameraConfig:
	# Camera index (int) or video file path/URL (str) per facing.
	front_source: Union[int, str] = 0
	back_source: Union[int, str] = 1
	initial_facing: str = "front"
	preview_width: int = 1080
	preview_height: Optional[int] = None  # derived from the platform aspect ratio when omitted
	flip_input: bool = True
	jpeg_quality: int = 80


@dataclass(frozen=True)
class LoopConfig:
	# Frame scheduler tick; <= 0 runs the next cycle on the next event-loop turn.
	refresh_hz: float = 60.0


@dataclass(frozen=True)
class PoseConfig:
	model_complexity: int = 1
	min_detection_confidence: float = 0.5
	min_tracking_confidence: float = 0.5


@dataclass(frozen=True)
class LoggingConfig:
	level: str = "INFO"


@dataclass(frozen=True)
class AppConfig:
	overlay: OverlayConfig = field(default_factory=OverlayConfig)
	platform: PlatformConfig = field(default_factory=PlatformConfig)
	camera: CameraConfig = field(default_factory=CameraConfig)
	loop: LoopConfig = field(default_factory=LoopConfig)
	pose: PoseConfig = field(default_factory=PoseConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)


_CONFIG_PATH: Optional[Path] = None
_CONFIG_CACHE: Optional[AppConfig] = None


def _repo_root() -> Path:
	# posecam/config.py -> repo root is one level up.
	return Path(__file__).resolve().parents[1]


def get_default_config_path() -> Path:
	env = os.getenv("POSECAM_CONFIG")
	if env:
		return Path(env).expanduser().resolve()
	return _repo_root() / "config.json"


def set_config_path(path: str | Path) -> None:
	"""
	Override the config path (must be called before first get_config()).
	"""
	global _CONFIG_PATH
	global _CONFIG_CACHE
	_CONFIG_PATH = Path(path).expanduser().resolve()
	_CONFIG_CACHE = None


def _deep_get(d: Dict[str, Any], keys: list[str], default: Any = None) -> Any:
	cur: Any = d
	for k in keys:
		if not isinstance(cur, dict):
			return default
		cur = cur.get(k)
	return cur if cur is not None else default


def _as_int(v: Any, default: int) -> int:
	try:
		return int(v)
	except (TypeError, ValueError):
		return int(default)


def _as_bool(v: Any, default: bool) -> bool:
	if isinstance(v, bool):
		return v
	if isinstance(v, (int, float)):
		return bool(v)
	if isinstance(v, str):
		return v.strip().lower() in ("1", "true", "yes", "on")
	return bool(default)


def _as_str(v: Any, default: str = "") -> str:
	return str(v) if v is not None else str(default)


def _as_float(v: Any, default: float) -> float:
	try:
		return float(v)
	except (TypeError, ValueError):
		return float(default)


def _as_source(v: Any, default: Union[int, str]) -> Union[int, str]:
	# "2" means camera index 2; anything else non-numeric is a path/URL.
	if isinstance(v, bool) or v is None:
		return default
	if isinstance(v, int):
		return v if v >= 0 else default
	if isinstance(v, str):
		s = v.strip()
		if not s:
			return default
		return int(s) if s.isdigit() else s
	return default


def _as_choice(v: Any, default: str, parse) -> str:
	try:
		return parse(_as_str(v, default)).value
	except ValueError:
		return default


def load_config(path: Optional[str | Path] = None) -> AppConfig:
	p = Path(path).expanduser().resolve() if path else (_CONFIG_PATH or get_default_config_path())
	if not p.exists():
		# Defaults-only config; app can still run.
		return AppConfig()
	try:
		raw = json.loads(p.read_text(encoding="utf-8"))
	except (OSError, ValueError):
		# If config is malformed, fail safe to defaults (but keep app running).
		return AppConfig()

	if not isinstance(raw, dict):
		return AppConfig()

	min_score = _as_float(_deep_get(raw, ["overlay", "min_keypoint_score"], 0.3), 0.3)
	if not (0.0 <= min_score <= 1.0):
		min_score = 0.3
	out_w = _as_int(_deep_get(raw, ["overlay", "output_tensor_width"], 180), 180)
	auto_render = _as_bool(_deep_get(raw, ["overlay", "auto_render"], True), True)
	debug_mode = _as_bool(_deep_get(raw, ["overlay", "debug_mode"], True), True)

	family = _as_choice(_deep_get(raw, ["platform", "family"], "A"), "A", PlatformFamily.parse)

	front_src = _as_source(_deep_get(raw, ["camera", "front_source"], 0), 0)
	back_src = _as_source(_deep_get(raw, ["camera", "back_source"], 1), 1)
	facing = _as_choice(_deep_get(raw, ["camera", "initial_facing"], "front"), "front", CameraFacing.parse)
	preview_w = _as_int(_deep_get(raw, ["camera", "preview_width"], 1080), 1080)
	preview_h_raw = _deep_get(raw, ["camera", "preview_height"], None)
	preview_h = _as_int(preview_h_raw, 0) if preview_h_raw is not None else 0
	flip_input = _as_bool(_deep_get(raw, ["camera", "flip_input"], True), True)
	jpeg_quality = _as_int(_deep_get(raw, ["camera", "jpeg_quality"], 80), 80)

	refresh_hz = _as_float(_deep_get(raw, ["loop", "refresh_hz"], 60.0), 60.0)

	complexity = _as_int(_deep_get(raw, ["pose", "model_complexity"], 1), 1)
	det_conf = _as_float(_deep_get(raw, ["pose", "min_detection_confidence"], 0.5), 0.5)
	trk_conf = _as_float(_deep_get(raw, ["pose", "min_tracking_confidence"], 0.5), 0.5)

	level = _as_str(_deep_get(raw, ["logging", "level"], "INFO"), "INFO").strip().upper() or "INFO"

	return AppConfig(
		overlay=OverlayConfig(
			min_keypoint_score=float(min_score),
			output_tensor_width=int(out_w) if int(out_w) > 0 else 180,
			auto_render=auto_render,
			debug_mode=debug_mode,
		),
		platform=PlatformConfig(family=family),
		camera=CameraConfig(
			front_source=front_src,
			back_source=back_src,
			initial_facing=facing,
			preview_width=int(preview_w) if int(preview_w) > 0 else 1080,
			preview_height=int(preview_h) if int(preview_h) > 0 else None,
			flip_input=flip_input,
			jpeg_quality=int(jpeg_quality) if 1 <= int(jpeg_quality) <= 95 else 80,
		),
		loop=LoopConfig(refresh_hz=float(refresh_hz)),
		pose=PoseConfig(
			model_complexity=int(complexity) if int(complexity) in (0, 1, 2) else 1,
			min_detection_confidence=float(det_conf) if 0.0 <= float(det_conf) <= 1.0 else 0.5,
			min_tracking_confidence=float(trk_conf) if 0.0 <= float(trk_conf) <= 1.0 else 0.5,
		),
		logging=LoggingConfig(level=level),
	)


def get_config() -> AppConfig:
	global _CONFIG_CACHE
	if _CONFIG_CACHE is None:
		_CONFIG_CACHE = load_config()
	return _CONFIG_CACHE
