from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from groupbot.constants import BOT_TIMEZONE_NAME
from groupbot.crud import CreateData
from groupbot.db import engine
from groupbot.dependencies import copywriting_cache, horoscope_cache
from groupbot.load_secrets import enable_scheduler
from groupbot.routers import webhook
from groupbot.services.copywriting import preload_all_copywritings
from groupbot.services.horoscope import preload_all_horoscopes

scheduler = AsyncIOScheduler(timezone=BOT_TIMEZONE_NAME)
logging.basicConfig(level=logging.INFO)


def add_preload_jobs(scheduler: AsyncIOScheduler) -> None:
    """Register the cache warm jobs (UTC+8)."""
    # New daily horoscopes are published after midnight.
    scheduler.add_job(
        preload_all_horoscopes,
        "cron",
        args=[horoscope_cache],
        hour=0,
        minute=30,
        id="preload_horoscopes",
        replace_existing=True,
    )
    scheduler.add_job(
        preload_all_copywritings,
        "cron",
        args=[copywriting_cache],
        hour="*/2",
        minute=10,
        id="preload_copywritings",
        replace_existing=True,
    )


@asynccontextmanager
async def lifespan(app):
    """Create the actor storage table and start the cache warm jobs.
    This function is called to start the server.
    """
    await CreateData.create_table(engine)

    if enable_scheduler:
        add_preload_jobs(scheduler)
        scheduler.start()
    try:
        yield
    finally:
        if scheduler.running:
            scheduler.shutdown()
        await engine.dispose()
        logging.info("Stop Server")


app = FastAPI(lifespan=lifespan)
app.include_router(webhook.webhook_router)


# if __name__ == "__main__":
#     uvicorn.run(app, host="0.0.0.0", port=8080, reload=True)
