import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError

from socialhub import config
from socialhub.database.connection import close_mongo_connection, connect_to_mongo
from socialhub.exceptions import SocialHubError
from socialhub.repositories.activity_repository import FollowRepository
from socialhub.repositories.message_repository import MessageRepository
from socialhub.repositories.notification_repository import NotificationRepository
from socialhub.repositories.reaction_repository import ReactionRepository
from socialhub.routers.activity import router as activity_router
from socialhub.routers.chat import router as chat_router
from socialhub.routers.live import router as live_router
from socialhub.routers.notifications import router as notifications_router
from socialhub.routers.presence import router as presence_router
from socialhub.routers.stories import router as stories_router
from socialhub.utils.live_channel import LiveChannel
from socialhub.utils.presence import PresenceRegistry


logging.basicConfig(level=config.LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):

    db = await connect_to_mongo()
    try:
        for repo in (MessageRepository(db), NotificationRepository(db), ReactionRepository(db), FollowRepository(db)):
            await repo.ensure_indexes()
    except PyMongoError as exc:
        logger.warning("Index creation skipped: %s", exc)
    # presence lives and dies with this process
    app.state.live_channel = LiveChannel(PresenceRegistry())
    try:
        yield
    finally:
        await close_mongo_connection()


app = FastAPI(title="SocialHub realtime API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(chat_router)
app.include_router(notifications_router)
app.include_router(activity_router)
app.include_router(stories_router)
app.include_router(presence_router)
app.include_router(live_router)


@app.exception_handler(SocialHubError)
async def socialhub_error_handler(request: Request, exc: SocialHubError):
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(PyMongoError)
async def store_error_handler(request: Request, exc: PyMongoError):
    logger.exception("Store error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Database unavailable"})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.get("/")
async def root():
    return {"message": "SocialHub API is running!", "timestamp": datetime.now(timezone.utc).isoformat()}
