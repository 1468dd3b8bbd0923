from __future__ import annotations

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .logging import configure_logging, logger
from .middleware import AccessLogMiddleware, RequestIDMiddleware
from .planner import ReviewPlanner
from .routers import categories, config as cfg, health, overview, tasks, time_settings
from .store import create_repository


def create_app(planner: ReviewPlanner | None = None) -> FastAPI:
    """Create and configure the FastAPI application instance.

    `planner` を省略した場合は設定の DB パスからリポジトリを読み込む。
    store_load_policy=reject で保存データが壊れていれば起動に失敗する。
    """
    configure_logging()
    app = FastAPI(title="Review Planner API", version=__version__)

    if planner is None:
        planner = ReviewPlanner.load(create_repository())
    app.state.planner = planner
    logger.info(
        "app_initialized",
        environment=settings.environment,
        db_path=planner.repository.store.db_path,
        load_policy=planner.repository.policy,
    )

    configured_origins = list(settings.allowed_cors_origins)
    allow_credentials = bool(configured_origins)
    if not configured_origins:
        configured_origins = ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=configured_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Starlette では後から追加したミドルウェアが外側で実行される:
    #   AccessLog → RequestID → CORS → routes
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(AccessLogMiddleware)

    app.include_router(health.router)
    app.include_router(cfg.router, prefix="/api")
    app.include_router(tasks.router, prefix="/api/tasks")
    app.include_router(categories.router, prefix="/api/categories")
    app.include_router(time_settings.router, prefix="/api/time-settings")
    app.include_router(overview.router, prefix="/api/overview")

    return app


app = create_app()


if __name__ == "__main__":  # pragma: no cover
    import uvicorn

    uvicorn.run("review_planner.main:app", host="127.0.0.1", port=8000)
