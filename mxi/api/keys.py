"""Typed application keys for shared API dependencies."""

from aiohttp import web
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from mxi.config.settings import Settings
from mxi.services.blockchain.chain_checker import TransactionChecker
from mxi.services.realtime import RealtimeEventStream

SESSION_MAKER_KEY = web.AppKey("session_maker", async_sessionmaker[AsyncSession])
CHECKER_KEY = web.AppKey("checker", TransactionChecker)
SETTINGS_KEY = web.AppKey("settings", Settings)
EVENTS_KEY = web.AppKey("events", RealtimeEventStream)
