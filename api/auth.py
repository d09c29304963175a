"""Lender authentication: bcrypt password hashes and HS256 bearer tokens."""

import datetime
from typing import Optional

import bcrypt
import jwt
from fastapi import Depends, Header, HTTPException
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from config import JWT_EXPIRY_DAYS, JWT_SECRET

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=10)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


def create_token(lender_id: str, email: str, secret: str = JWT_SECRET, days: int = JWT_EXPIRY_DAYS) -> str:
    payload = {
        "lenderId": lender_id,
        "email": email,
        "exp": datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(days=days),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str = JWT_SECRET) -> dict:
    """Returns the payload; raises HTTPException(401) for anything unusable."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise HTTPException(401, "Token has expired")
    except InvalidTokenError:
        raise HTTPException(401, "Invalid token")
    if not payload.get("lenderId"):
        raise HTTPException(401, "Invalid token payload")
    return payload


def bearer_token(authorization: Optional[str] = Header(default=None)) -> str:
    if not authorization:
        raise HTTPException(401, "Unauthorized")
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(401, "Token prefix missing")
    return token


def current_lender_id(token: str = Depends(bearer_token)) -> str:
    """Dependency: the authenticated lender's id."""
    return decode_token(token)["lenderId"]
