import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Routers
from routers.health import router as health_router
from routers.players import router as players_router
from routers.scores import router as scores_router
from routers.sessions import router as sessions_router
from sessions import SessionRegistry, start_sweeper
from store import build_score_store

logger = logging.getLogger("quickfire-maths")
logging.basicConfig(level=logging.INFO)

DEFAULT_CORS_ORIGINS = "http://localhost:3000,http://127.0.0.1:3000"
CORS_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ORIGINS", DEFAULT_CORS_ORIGINS).split(",") if o.strip()
]

score_store = build_score_store()
logger.info("Using %s for scores", type(score_store).__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Games that time out with nobody polling still get their score saved
    stop = start_sweeper(app.state.sessions)
    yield
    stop.set()
    app.state.sessions.sweep()


app = FastAPI(title="Quickfire Maths – Game API", lifespan=lifespan)

# The store backend is picked once here; everything else receives it via app.state
app.state.score_store = score_store
app.state.sessions = SessionRegistry(store=score_store)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
def health_root():
    return {"ok": True}


# Register routers
app.include_router(players_router)  # /players/login
app.include_router(sessions_router)  # /sessions/...
app.include_router(scores_router)  # /scores/..., /leaderboard/...
app.include_router(health_router)  # /health/...
