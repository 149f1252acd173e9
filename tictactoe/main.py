from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
import uvicorn
from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from redis.asyncio import Redis

from tictactoe import load_settings as settings
from tictactoe.create_db_engine import engine
from tictactoe.db import Session
from tictactoe.error_handlers import handle_unexpected_error, register_error_handlers
from tictactoe.game_cache import LocalGameCache, RedisGameCache
from tictactoe.game_sync_manager import GameSyncManager
from tictactoe.models.schemas import Base
from tictactoe.request_context import (
    LOG_FORMAT,
    install_log_record_factory,
    new_request_id,
    request_id_var,
)
from tictactoe.routers import game, game_ws
from tictactoe.services.game_coordinator import GameCoordinator
from tictactoe.services.game_db import GameRepository

install_log_record_factory()
logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


def build_cache():
    if settings.cache_backend == "local":
        return LocalGameCache(ttl_sec=settings.cache_ttl_sec)
    redis = Redis.from_url(settings.redis_url, decode_responses=True, health_check_interval=30)
    return RedisGameCache(redis, settings.cache_ttl_sec, settings.cache_timeout_sec)


@asynccontextmanager
async def lifespan(app):
    """Create the tables, wire the coordinator and start the idle-lock sweeper.
    This function is called to start the server.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    cache = build_cache()
    sync_manager = GameSyncManager()
    app.state.coordinator = GameCoordinator(
        GameRepository(Session),
        cache,
        sync_manager,
        storage_timeout=settings.storage_timeout_sec,
        lock_timeout=settings.lock_timeout_sec,
        max_attempts=settings.max_commit_attempts,
    )
    logging.info(f"Server ready: cache={settings.cache_backend}")

    scheduler = AsyncIOScheduler()
    # Locks of games nobody touched for a while are dropped from the registry
    scheduler.add_job(
        sync_manager.prune_idle,
        "interval",
        seconds=settings.lock_sweep_interval_sec,
        args=[settings.lock_idle_sec],
        id="prune_idle_game_locks",
        replace_existing=True,
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown(wait=False)
        await cache.close()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
register_error_handlers(app)
app.include_router(game.game_router)
app.include_router(game_ws.game_ws_router)


@app.middleware("http")
async def assign_request_id(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or new_request_id()
    token = request_id_var.set(request_id)
    try:
        response = await call_next(request)
    except Exception as e:
        # Unhandled errors are answered here so the log line and response keep the id.
        response = await handle_unexpected_error(request, e)
    finally:
        request_id_var.reset(token)
    response.headers["X-Request-ID"] = request_id
    return response


if __name__ == "__main__":
    uvicorn.run("tictactoe.main:app", host="0.0.0.0", port=8080)
