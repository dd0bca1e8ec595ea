from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.filters import ExceptionTypeFilter

from splitbook.config import Settings, get_settings
from splitbook.db.base import LedgerStore
from splitbook.db.memory import MemoryLedgerStore
from splitbook.db.repo import Database, LedgerRepository
from splitbook.handlers import basic_router, expenses_router, on_ledger_error, participants_router
from splitbook.logging import configure_logging, get_logger
from splitbook.scheduler import setup_scheduler
from splitbook.services.errors import LedgerError
from splitbook.state import registry


def open_store(settings: Settings) -> tuple[LedgerStore, Database | None]:
    if settings.uses_memory_store:
        return MemoryLedgerStore(), None
    db = Database(settings.database_url, timeout=settings.db_timeout)
    return LedgerRepository(db), db


async def main() -> None:
    configure_logging()
    settings = get_settings()
    bot = Bot(token=settings.bot_token, default=DefaultBotProperties(parse_mode=ParseMode.HTML))
    dp = Dispatcher()

    store, db = open_store(settings)
    if db is not None:
        await db.connect()
    registry.bind(store)

    dp.include_router(basic_router)
    dp.include_router(expenses_router)
    dp.include_router(participants_router)
    dp.errors.register(on_ledger_error, ExceptionTypeFilter(LedgerError))

    scheduler = await setup_scheduler()

    log = get_logger(__name__)
    log.info("bot.start", store=type(store).__name__)
    try:
        await dp.start_polling(bot)
    finally:
        scheduler.shutdown(wait=False)
        if db is not None:
            await db.close()
        await bot.session.close()
        log.info("bot.stop")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
