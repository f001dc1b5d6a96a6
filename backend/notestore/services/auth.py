from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from notestore.config import settings
from notestore.schemas.auth import TokenData


def create_access_token(node_id: str, expire_minutes: int | None = None) -> str:
    minutes = expire_minutes if expire_minutes is not None else settings.access_token_expire_minutes
    expire = datetime.now(UTC) + timedelta(minutes=minutes)
    payload = {"sub": node_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm="HS256")


def decode_token(token: str) -> TokenData:
    payload = jwt.decode(token, settings.secret_key, algorithms=["HS256"])
    node_id: str | None = payload.get("sub")
    if not node_id:
        raise JWTError("missing sub")
    return TokenData(node_id=node_id)
