from fastapi import HTTPException, status, Request
from jose import JWTError, jwt
import os

ALGORITHM = "HS256"
AUTH_COOKIE = "auth_token"


def _secret_key() -> str:
    secret = os.getenv("NEXTAUTH_SECRET")
    if not secret:
        raise ValueError("CRITICAL: NEXTAUTH_SECRET is not set in environment variables. Authentication cannot proceed.")
    return secret


def _token_from_request(request: Request):
    token = request.cookies.get(AUTH_COOKIE)
    if token:
        return token
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        return auth_header.split(" ", 1)[1]
    return None


async def get_current_user_id(request: Request) -> str:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token = _token_from_request(request)
    if not token:
        raise credentials_exception

    opts = {}
    audience = os.getenv("EXPECTED_AUD")
    opts["verify_aud"] = bool(audience)

    try:
        payload = jwt.decode(token, _secret_key(), algorithms=[ALGORITHM], audience=audience, options=opts)
    except JWTError:
        raise credentials_exception

    user_id = payload.get("sub")
    if not user_id:
        raise credentials_exception
    return str(user_id)
