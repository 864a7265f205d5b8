"""
Live pose-overlay core package.

The frame-processing loop, the orientation-aware coordinate transform and the
collaborator adapters (camera, pose model, presenter) live here so the FastAPI
shell at the repository root stays thin.
"""

from pathlib import Path


def _read_version() -> str:
	try:
		vf = Path(__file__).resolve().parents[1] / "VERSION"
		if vf.exists():
			val = vf.read_text(encoding="utf-8").strip()
			if val:
				return val
	except Exception:
		pass
	return "0.1.0"


__version__ = _read_version()
