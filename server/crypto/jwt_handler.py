from typing import Final
from collections.abc import Mapping, Sequence
import jwt
import time

type JSON = Mapping[str, JSON] | Sequence[JSON] | str | None | bool | float | int

ISSUER: Final[str] = "millionaire"
AUDIENCE: Final[str] = "player"


class JWTHandler:
    def __init__(self, secret_key: str):
        self._key: Final[str] = secret_key
        self._algo: Final[str] = "HS256"

    def encode(self, payload: Mapping[str, JSON]) -> str:
        return jwt.encode(dict(payload), self._key, algorithm=self._algo)

    def decode(self, token: str) -> Mapping[str, JSON]:
        return jwt.decode(token, self._key, algorithms=[self._algo], audience=AUDIENCE, issuer=ISSUER)  # pyright: ignore[reportAny]

    def verify(self, token: str) -> bool:
        try:
            _ = self.decode(token)
            return True
        except jwt.InvalidTokenError:
            return False

    def create_user(self, user_id: int, username: str, ttl: float = 86400) -> str:
        now = time.time()
        payload = {
            "nbf": now,
            "iat": now,
            "exp": now + ttl,
            "iss": ISSUER,
            "aud": [AUDIENCE],
            "user_id": user_id,
            "username": username,
        }
        return self.encode(payload)
