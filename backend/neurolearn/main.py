import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError

from .db import Base, engine, get_db
from .cleanup import purge_expired_activities
from .gemini_client import GeminiError
from .settings import settings
from .routers import health
from .routers import activity
from .routers import neurolearn
from .routers import sparkiq

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="NeuroLearn API")
app.include_router(health.router)
app.include_router(activity.router)
app.include_router(neurolearn.router)
app.include_router(sparkiq.router)


@app.exception_handler(GeminiError)
async def gemini_error_handler(request: Request, exc: GeminiError):
	logger.error("Gemini unavailable for %s: %s", request.url.path, exc)
	return JSONResponse(status_code=502, content={"detail": "The AI service is unavailable. Please try again."})


@app.get("/", include_in_schema=False)
async def redirect_root_to_docs():
	return RedirectResponse(url="/docs")


def _purge_once() -> None:
	db = next(get_db())
	try:
		removed = purge_expired_activities(db, settings.activity_retention_days)
		if removed:
			logger.info("Purged %d expired activity rows", removed)
	except SQLAlchemyError:
		logger.exception("Activity purge failed")
	finally:
		db.close()


async def _cleanup_watcher():
	while True:
		await asyncio.sleep(24 * 60 * 60)
		await asyncio.to_thread(_purge_once)


_cleanup_task: Optional[asyncio.Task] = None


@app.on_event("startup")
async def startup_event():
	global _cleanup_task
	# Initialize DB schema
	Base.metadata.create_all(bind=engine)
	await asyncio.to_thread(_purge_once)
	_cleanup_task = asyncio.create_task(_cleanup_watcher())


@app.on_event("shutdown")
async def shutdown_event():
	global _cleanup_task
	if _cleanup_task is not None:
		_cleanup_task.cancel()
		_cleanup_task = None
