import json

from posecam.config import AppConfig, load_config


def _write(tmp_path, obj):
	p = tmp_path / "config.json"
	p.write_text(json.dumps(obj) if not isinstance(obj, str) else obj, encoding="utf-8")
	return p


def test_missing_file_gives_defaults(tmp_path):
	cfg = load_config(tmp_path / "nope.json")
	assert cfg == AppConfig()
	assert cfg.overlay.min_keypoint_score == 0.3
	assert cfg.overlay.output_tensor_width == 180
	assert cfg.overlay.auto_render is True


def test_malformed_file_gives_defaults(tmp_path):
	assert load_config(_write(tmp_path, "{not json")) == AppConfig()
	assert load_config(_write(tmp_path, "[1, 2]")) == AppConfig()


def test_values_are_parsed(tmp_path):
	cfg = load_config(
		_write(
			tmp_path,
			{
				"overlay": {"min_keypoint_score": 0.5, "output_tensor_width": 256, "auto_render": "off"},
				"platform": {"family": "b"},
				"camera": {"front_source": "2", "back_source": "clip.mp4", "initial_facing": "BACK", "preview_height": 1600},
				"loop": {"refresh_hz": 30},
				"logging": {"level": "debug"},
			},
		)
	)
	assert cfg.overlay.min_keypoint_score == 0.5
	assert cfg.overlay.output_tensor_width == 256
	assert cfg.overlay.auto_render is False
	assert cfg.platform.family == "B"
	assert cfg.camera.front_source == 2
	assert cfg.camera.back_source == "clip.mp4"
	assert cfg.camera.initial_facing == "back"
	assert cfg.camera.preview_height == 1600
	assert cfg.loop.refresh_hz == 30.0
	assert cfg.logging.level == "DEBUG"


def test_invalid_values_fall_back(tmp_path):
	cfg = load_config(
		_write(
			tmp_path,
			{
				"overlay": {"min_keypoint_score": 7, "output_tensor_width": -1},
				"platform": {"family": "Z"},
				"camera": {"initial_facing": "sideways", "jpeg_quality": 500, "front_source": -3},
				"pose": {"model_complexity": 9},
			},
		)
	)
	assert cfg.overlay.min_keypoint_score == 0.3
	assert cfg.overlay.output_tensor_width == 180
	assert cfg.platform.family == "A"
	assert cfg.camera.initial_facing == "front"
	assert cfg.camera.jpeg_quality == 80
	assert cfg.camera.front_source == 0
	assert cfg.pose.model_complexity == 1
