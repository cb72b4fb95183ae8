import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import FastAPI, APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from crypto.password import hash_password, verify_password
from database.user import DuplicateIdentityError, create_user, get_credential
from helper.db_helper import DB, get_tx_conn
from helper.jwt_helper import jwt_handler

auth_app = FastAPI()

public_router = APIRouter()

TOKEN_TTL_SECONDS = 86400
MIN_PASSWORD_LENGTH = 6

logger = logging.getLogger(__name__)


@dataclass
class RegisterReq:
    username: str
    email: str
    password: str


@dataclass
class LoginReq:
    email: str
    password: str


def _login_response(user_id: int, username: str, email: str, status_code: int = 200) -> JSONResponse:
    token = jwt_handler.create_user(user_id, username, ttl=TOKEN_TTL_SECONDS)
    resp = JSONResponse(
        {"token": token, "user": {"id": user_id, "username": username, "email": email}},
        status_code=status_code,
    )
    resp.set_cookie(
        "login",
        token,
        max_age=TOKEN_TTL_SECONDS,
        httponly=True,
        path="/",
    )
    return resp


@public_router.post("/register")
async def register(
    conn: Annotated[DB, Depends(get_tx_conn)],
    req: RegisterReq,
) -> JSONResponse:
    username = req.username.strip()
    email = req.email.strip().lower()
    if not username or "@" not in email:
        raise HTTPException(422, "A username and a valid email are required")
    if len(req.password) < MIN_PASSWORD_LENGTH:
        raise HTTPException(422, f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    try:
        user = await create_user(
            conn, username, email, await run_in_threadpool(hash_password, req.password)
        )
    except DuplicateIdentityError:
        raise HTTPException(status.HTTP_409_CONFLICT, "Username or email already exists")
    logger.info("Registered user %d (%s)", user.id, user.username)
    return _login_response(user.id, user.username, user.email, status.HTTP_201_CREATED)


@public_router.post("/login")
async def login(
    conn: Annotated[DB, Depends(get_tx_conn)],
    req: LoginReq,
) -> JSONResponse:
    credential = await get_credential(conn, req.email.strip().lower())
    if credential is None or not await run_in_threadpool(
        verify_password, req.password, credential.password_hash
    ):
        raise HTTPException(401, "Invalid credentials")
    return _login_response(credential.id, credential.username, credential.email)


@public_router.get("/logout")
async def logout():
    resp = JSONResponse({"status": "ok"})
    resp.delete_cookie("login")
    return resp


auth_app.include_router(public_router)
