import argparse
import logging
from contextlib import asynccontextmanager
from typing import Callable, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app_state import AppState
from posecam.config import AppConfig, get_config, set_config_path
from posecam.presenter import BroadcastPresenter, OverlayPresenter
from posecam.session import OverlaySession, build_default_session
from routers import overlay, video, ws

logger = logging.getLogger(__name__)

SessionBuilder = Callable[[AppConfig, OverlayPresenter], OverlaySession]


def _configure_logging(cfg: AppConfig) -> None:
	level = getattr(logging, cfg.logging.level, logging.INFO)
	logging.basicConfig(level=level, format="%(asctime)s %(levelname)s:%(name)s:%(message)s")


def create_app(
	cfg: Optional[AppConfig] = None,
	session_builder: SessionBuilder = build_default_session,
	autostart: bool = True,
) -> FastAPI:
	@asynccontextmanager
	async def lifespan(app: FastAPI):
		app_cfg = cfg or get_config()
		_configure_logging(app_cfg)
		state = AppState(cfg=app_cfg, manager=ws.manager)
		app.state.state = state
		try:
			presenter = BroadcastPresenter(ws.manager.broadcast_json)
			try:
				state.session = session_builder(app_cfg, presenter)
			except Exception as e:
				# Camera/model stack unavailable; keep serving so /status can report it.
				logger.error("[Server] overlay session unavailable: %r", e)
				state.session = None
			if state.session is not None and autostart:
				state.session.start()
			yield
		finally:
			if state.session is not None:
				await state.session.close()
				state.session = None

	app = FastAPI(lifespan=lifespan)
	app.add_middleware(
		CORSMiddleware,
		allow_origins=["*"],
		allow_credentials=True,
		allow_methods=["*"],
		allow_headers=["*"],
	)
	app.include_router(overlay.router)
	app.include_router(video.router)
	app.include_router(ws.router)
	return app


app = create_app()


def main(argv: Optional[list] = None) -> int:
	import uvicorn

	p = argparse.ArgumentParser(description="Live pose overlay server")
	p.add_argument("--host", default="0.0.0.0", help="Bind address")
	p.add_argument("--port", type=int, default=8000, help="Bind port")
	p.add_argument("--config", default=None, help="Path to config.json")
	args = p.parse_args(argv)

	if args.config:
		set_config_path(args.config)
	uvicorn.run(create_app(), host=args.host, port=int(args.port))
	return 0


if __name__ == "__main__":
	raise SystemExit(main())
