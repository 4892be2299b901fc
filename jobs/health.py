"""
Health check server for the job scheduler.

Reports scheduler state and registered jobs over HTTP.
"""

import asyncio

from aiohttp import web
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

SCHEDULER_KEY = web.AppKey("scheduler", AsyncIOScheduler)


async def health_handler(request: web.Request) -> web.Response:
    """Scheduler status with the next run time of every job."""
    scheduler = request.app.get(SCHEDULER_KEY)
    if scheduler is None:
        return web.json_response(
            {"status": "unhealthy", "error": "Scheduler not initialized"},
            status=503,
        )

    jobs = scheduler.get_jobs()
    return web.json_response(
        {
            "status": "healthy" if scheduler.running else "stopped",
            "scheduler_running": scheduler.running,
            "jobs_count": len(jobs),
            "jobs": [
                {
                    "id": job.id,
                    "name": job.name,
                    "next_run_time": (
                        next_run.isoformat()
                        if (next_run := getattr(job, "next_run_time", None))
                        else None
                    ),
                }
                for job in jobs
            ],
        },
        status=200 if scheduler.running else 503,
    )


async def liveness_handler(request: web.Request) -> web.Response:
    """Process is alive."""
    return web.json_response({"status": "alive", "alive": True})


def create_health_app(scheduler: AsyncIOScheduler | None) -> web.Application:
    app = web.Application()
    if scheduler is not None:
        app[SCHEDULER_KEY] = scheduler
    app.router.add_get("/health", health_handler)
    app.router.add_get("/liveness", liveness_handler)
    return app


async def start_health_server(
    scheduler: AsyncIOScheduler,
    host: str = "0.0.0.0",
    port: int = 8081,
) -> web.AppRunner:
    """
    Start health check server.

    Returns:
        AppRunner for cleanup
    """
    runner = web.AppRunner(create_health_app(scheduler))
    await runner.setup()
    site = web.TCPSite(runner, host, port)
    await site.start()

    logger.info(f"Health check server started on {host}:{port}")
    return runner


async def stop_health_server(runner: web.AppRunner, timeout: int = 5) -> None:
    """Stop health check server gracefully."""
    logger.info("Stopping health check server...")
    try:
        await asyncio.wait_for(runner.cleanup(), timeout=timeout)
    except TimeoutError:
        logger.warning(f"Health check server cleanup timed out after {timeout}s")
