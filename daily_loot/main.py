from apscheduler.schedulers.asyncio import AsyncIOScheduler
import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager

from daily_loot.authentication.basic_authentication_crud import CreateAuthentication
from daily_loot.create_database_engine import engine
from daily_loot.dependencies import claim_resolver, distribution
from daily_loot.load_secrets import distribution_report_hours
from daily_loot.routers import admin, claim

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app):
    """Create the tables and schedule the distribution report.
    This function is called to start the server.
    """
    await CreateAuthentication.create_table(engine)

    # Log the claimed distribution against the configured one
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        distribution.log_report,
        "interval",
        hours=distribution_report_hours,
        kwargs={"hours": distribution_report_hours},
        id="distribution_report",
        replace_existing=True,
    )
    scheduler.start()
    try:
        yield
    finally:
        scheduler.shutdown()
        if claim_resolver.publisher is not None:
            await claim_resolver.publisher.close()
        logging.info("Stop Server")


app = FastAPI(title="Daily Loot", lifespan=lifespan)
app.include_router(admin.admin_router)
app.include_router(claim.claim_router)


# Serve with: uvicorn daily_loot.main:app --host 0.0.0.0 --port 8080  (pip install ".[serve]")
