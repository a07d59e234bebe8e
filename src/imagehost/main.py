"""FastAPI application entry point.

Run with ``uvicorn src.imagehost.main:create_app --factory``.
"""

from __future__ import annotations

import uvicorn
from fastapi import FastAPI

from .config import AppConfig, load_config
from .dependencies import include_routers
from .lifecycle import lifespan
from .logging import configure_logging
from .utils.clock import Clock


def create_app(config: AppConfig | None = None, *, clock: Clock | None = None) -> FastAPI:
    """Build FastAPI instance with configured dependencies."""
    cfg = config or load_config()
    configure_logging(cfg.settings.log_level)
    app = FastAPI(title="ImageHost", lifespan=lifespan)
    include_routers(app, cfg, clock=clock)
    return app


def run(host: str = "0.0.0.0", port: int = 3001) -> None:
    uvicorn.run("src.imagehost.main:create_app", factory=True, host=host, port=port)


if __name__ == "__main__":
    run()
