from crypto.jwt_handler import JWTHandler
import os
import logging

from dotenv import load_dotenv
from fastapi import Request, HTTPException

load_dotenv()  # pyright: ignore[reportUnusedCallResult]

jwt_handler = JWTHandler(os.environ["JWT_SECRET"])

logger = logging.getLogger(__name__)


class AuthError(HTTPException):
    def __init__(self, detail: str = "Unauthorized", status_code: int = 401):
        super().__init__(status_code=status_code, detail=detail)


def _extract_token(request: Request) -> str | None:
    auth_header = request.headers.get("Authorization")
    if auth_header:
        scheme, _, value = auth_header.partition(" ")
        if scheme.lower() == "bearer" and value:
            return value.strip()
    if request.cookies.get("login"):
        return request.cookies["login"]
    return request.headers.get("X-API-KEY")


async def get_user(
    request: Request,
) -> int:
    jwt_value = _extract_token(request)
    if not jwt_value:
        raise AuthError("Not logged in")
    try:
        jwt_inner = jwt_handler.decode(jwt_value)
    except Exception:
        logger.warning("Failed to decode JWT", exc_info=True)
        raise AuthError("Invalid token")
    user_id = jwt_inner.get("user_id")
    if user_id is None or not isinstance(user_id, int) or isinstance(user_id, bool):
        raise AuthError("Invalid token")
    return user_id
