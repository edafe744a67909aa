import asyncio

from loguru import logger

from vitalcheck.config import AppConfig, StoreAdapter
from vitalcheck.rules.timestamps import local_today
from vitalcheck.services.factory import build_services
from vitalcheck.store.factory import build_document_store


async def run_reminder_sweep() -> int:
    config = AppConfig()
    if config.store.adapter == StoreAdapter.MEMORY:
        logger.warning(
            "Reminder sweep is using the in-memory store; set FIRESTORE_ADAPTER=firestore "
            "to sweep real medications"
        )
    store = build_document_store(config)
    services = build_services(config, store)

    today = local_today(config.reminders.timezone)
    logger.info("Starting reminder sweep for {} ({})", today, config.reminders.timezone)
    try:
        return await services.reminders.run(today)
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(run_reminder_sweep())
