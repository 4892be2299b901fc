"""
API server.

Hosts the purchase verification endpoint.

Usage:
    python -m mxi.api.server
"""

import asyncio

from aiohttp import web
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mxi.api.keys import CHECKER_KEY, EVENTS_KEY, SESSION_MAKER_KEY, SETTINGS_KEY
from mxi.api.routes import setup_routes
from mxi.config.settings import Settings
from mxi.services.blockchain.chain_checker import TransactionChecker
from mxi.services.realtime import RealtimeEventStream


def create_app(
    session_maker: async_sessionmaker[AsyncSession],
    checker: TransactionChecker,
    app_settings: Settings,
    events: RealtimeEventStream | None = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        session_maker: Session factory, one session per request
        checker: On-chain transaction checker
        app_settings: Verification settings (wallets, confirmations, bounds)
        events: Row change stream notified after confirmations

    Returns:
        Configured application
    """
    app = web.Application()
    app[SESSION_MAKER_KEY] = session_maker
    app[CHECKER_KEY] = checker
    app[SETTINGS_KEY] = app_settings
    app[EVENTS_KEY] = events or RealtimeEventStream()
    setup_routes(app)
    return app


async def run_server() -> None:
    """Start the API server and serve until cancelled."""
    from mxi.config.database import async_session_maker, engine
    from mxi.config.settings import settings
    from mxi.initialization.logging import setup_logging
    from mxi.services.blockchain.chain_checker import ChainTransactionChecker

    setup_logging(settings.log_file, settings.log_level, component="API server")

    checker = ChainTransactionChecker(
        settings.rpc_url,
        settings.usdt_contract_address,
        settings.usdt_decimals,
    )
    app = create_app(async_session_maker, checker, settings)

    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.api_host, settings.api_port)
    await site.start()
    logger.info(f"API server started on {settings.api_host}:{settings.api_port}")

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Stopping API server...")
        await runner.cleanup()
        checker.close()
        await engine.dispose()


def main() -> None:
    try:
        asyncio.run(run_server())
    except KeyboardInterrupt:
        logger.info("API server stopped by user")


if __name__ == "__main__":
    main()
