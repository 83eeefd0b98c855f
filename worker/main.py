# ============================================================================
# WORKER MAIN ENTRY POINT
# ============================================================================
# STATUS: Core - Worker process entry point
# PURPOSE: Load settings, start one engine per worker, serve health probes
# CREATED: 17 OCT 2026
# ============================================================================
"""
Worker Main Entry Point

Starts an external task worker process that:
1. Loads settings (YAML file or environment)
2. Builds one handler + engine client + engine per configured worker
3. Serves health probes
4. Polls until SIGTERM / SIGINT

Usage:
    WORKER_CONFIG_FILE=workers.yaml python -m worker.main

Environment Variables:
    WORKER_CONFIG_FILE: YAML settings file (optional)
    ENGINE_BASE_URL / ENGINE_USER / ENGINE_PASSWORD: Engine connection
    WORKER_TOPIC / WORKER_ID / WORKER_STRATEGY: Single worker (no file)
    HTTP_TARGET_URL: Business endpoint (no file)
    LOG_LEVEL: Log level (default INFO)
    LOG_FORMAT: "json" for structured output
    PORT: Health server port (default 8000)
"""

import asyncio
import os
import signal
import sys
from typing import List, Optional

from aiohttp import web

from core.config import AppSettings, ConfigurationError, load_settings
from core.logging import configure_logging, get_logger
from core.serialization import SerializationConfig
from handlers import StrategyError, create_handler
from worker.engine import WorkerEngine
from worker.engine_client import EngineClient
from __version__ import __version__, BUILD_DATE

configure_logging(
    level=os.environ.get("LOG_LEVEL", "INFO"),
    json_output=os.environ.get("LOG_FORMAT", "").lower() == "json",
)
logger = get_logger(__name__)

# Worker state for health checks
_worker_healthy = True
_worker_status = "starting"
_engines: List[WorkerEngine] = []


# ============================================================================
# HEALTH SERVER
# ============================================================================

async def health_handler(request):
    """
    Health check endpoint.

    Returns version, status and per-worker stats.
    """
    response_data = {
        "status": "healthy" if _worker_healthy else "unhealthy",
        "worker_status": _worker_status,
        "version": __version__,
        "build_date": BUILD_DATE,
        "workers": [engine.stats() for engine in _engines],
    }

    if _worker_healthy:
        return web.json_response(response_data)
    return web.json_response(response_data, status=503)


async def start_health_server(port: int = 8000) -> web.AppRunner:
    """Start minimal HTTP server for health probes."""
    app = web.Application()
    app.router.add_get("/", health_handler)
    app.router.add_get("/health", health_handler)
    app.router.add_get("/livez", health_handler)
    app.router.add_get("/readyz", health_handler)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "0.0.0.0", port)
    await site.start()
    logger.info(f"Health server started on port {port}")
    return runner


# ============================================================================
# WIRING
# ============================================================================

def build_engines(
    settings: AppSettings,
    serialization: Optional[SerializationConfig] = None,
) -> List[WorkerEngine]:
    """
    Build one engine per configured worker.

    Each worker gets its own engine client and handler so their HTTP
    connection pools and limiters are independent.
    """
    serialization = serialization or SerializationConfig()
    engines = []
    for worker in settings.workers:
        handler = create_handler(worker, serialization)
        client = EngineClient(settings.engine, serialization)
        engines.append(WorkerEngine(worker, handler, client, serialization))
        logger.info(
            f"Configured worker {worker.display_name}: topic={worker.topic} "
            f"strategy={worker.strategy} target={worker.http.target_url}"
        )
    return engines


def install_signal_handlers(engines: List[WorkerEngine]) -> None:
    """SIGTERM / SIGINT stop every engine."""
    loop = asyncio.get_running_loop()

    def shutdown_handler():
        logger.info("Shutdown signal received")
        for engine in engines:
            loop.create_task(engine.stop())

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, shutdown_handler)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass


# ============================================================================
# MAIN
# ============================================================================

async def main() -> int:
    """Main entry point. Returns the process exit code."""
    global _worker_healthy, _worker_status, _engines

    logger.info("=" * 60)
    logger.info(f"External Task Worker Starting v{__version__}")
    logger.info("=" * 60)

    try:
        settings = load_settings()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    configure_logging(level=settings.logging.level, json_output=settings.logging.json_output)

    try:
        _engines = build_engines(settings)
    except (ConfigurationError, StrategyError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    health_runner = await start_health_server(settings.health_port)
    install_signal_handlers(_engines)

    _worker_status = "running"
    exit_code = 0

    try:
        results = await asyncio.gather(
            *(engine.run() for engine in _engines),
            return_exceptions=True,
        )
        for engine, result in zip(_engines, results):
            if isinstance(result, BaseException) and not isinstance(result, asyncio.CancelledError):
                logger.error(f"Worker {engine.worker_id} failed: {result!r}")
                _worker_healthy = False
                _worker_status = f"error: {str(result)[:100]}"
                exit_code = 1
    finally:
        for engine in _engines:
            await engine.close()
        await health_runner.cleanup()

    logger.info("External Task Worker stopped")
    return exit_code


def run() -> None:
    """Synchronous entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
