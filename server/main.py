import logging
import os
from contextlib import asynccontextmanager
from collections.abc import Callable, Awaitable

from dotenv import load_dotenv
from fastapi import FastAPI, Request, Response

load_dotenv()  # pyright: ignore[reportUnusedCallResult]

logging.basicConfig(
    level=os.environ.get("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)

from api.auth import auth_app
from api.user import user_app
from api.quiz import quiz_app
from api.shop import shop_app
from api.bank import bank_app
from api.ai import ai_app
from api.leaderboard import leaderboard_router
from helper.db_helper import init_pool, close_pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_pool(app)
    yield
    await close_pool(app)


app = FastAPI(title="Millionaire", lifespan=lifespan)
app.mount("/auth", auth_app)
app.mount("/user", user_app)
app.mount("/quiz", quiz_app)
app.mount("/shop", shop_app)
app.mount("/bank", bank_app)
app.mount("/ai", ai_app)
app.include_router(leaderboard_router)


@app.middleware("http")
async def attach_parent(request: Request, call_next: Callable[[Request], Awaitable[Response]]):
    request.state.parent = app
    response = await call_next(request)
    return response


@app.get("/health")
async def health():
    return {"status": "ok"}
