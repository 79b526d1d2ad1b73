import base64
import hashlib
import hmac
import json
import time
from typing import Any, Callable, Literal, TypedDict

from fastapi import Depends, Header, HTTPException

from backend.config import AUTH_TOKEN_TTL_SECONDS, SIGNING_KEY

Role = Literal["admin", "student", "parent"]
ROLES: tuple[Role, ...] = ("admin", "student", "parent")


class SessionClaims(TypedDict):
    sub: str
    role: Role
    iat: int
    exp: int


def _urlsafe(raw: bytes) -> str:
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")


def _from_urlsafe(value: str) -> bytes:
    return base64.urlsafe_b64decode(value + "=" * (-len(value) % 4))


def _signature(body: str) -> str:
    mac = hmac.new(SIGNING_KEY.encode("utf-8"), body.encode("ascii"), hashlib.sha256)
    return _urlsafe(mac.digest())


def _claims_are_valid(claims: Any, now: int) -> bool:
    if not isinstance(claims, dict):
        return False
    sub = claims.get("sub")
    exp = claims.get("exp")
    return (
        isinstance(sub, str)
        and bool(sub.strip())
        and claims.get("role") in ROLES
        and isinstance(exp, int)
        and exp >= now
    )


def issue_session_token(subject: str, *, role: str) -> tuple[str, SessionClaims]:
    """
    Sign a session for `subject` acting as `role`.

    The token is `<claims>.<hmac>`, both urlsafe base64. The claims are not
    encrypted, only signed, so nothing secret goes into them.
    """
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    issued = int(time.time())
    claims: SessionClaims = {
        "sub": subject.strip(),
        "role": role, # type: ignore[typeddict-item]
        "iat": issued,
        "exp": issued + AUTH_TOKEN_TTL_SECONDS,
    }
    body = _urlsafe(json.dumps(claims, separators=(",", ":"), sort_keys=True).encode("utf-8"))
    return f"{body}.{_signature(body)}", claims


def decode_session_token(token: str) -> dict[str, Any] | None:
    """Claims of a well-signed, unexpired token; None for anything else."""
    body, dot, signature = (token or "").partition(".")
    if not dot or not hmac.compare_digest(signature, _signature(body)):
        return None

    try:
        claims = json.loads(_from_urlsafe(body).decode("utf-8"))
    except (ValueError, UnicodeDecodeError):
        return None

    if not _claims_are_valid(claims, int(time.time())):
        return None
    return claims


def require_session(authorization: str | None = Header(default=None)) -> dict[str, Any]:
    if not authorization:
        raise HTTPException(status_code=401, detail="Missing bearer token.")

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(status_code=401, detail="Invalid authorization scheme.")

    claims = decode_session_token(token.strip())
    if not claims:
        raise HTTPException(status_code=401, detail="Invalid or expired session token.")
    return claims


def require_role(*roles: Role) -> Callable[..., dict[str, Any]]:
    """Dependency factory: a valid session whose role is one of `roles`."""

    def _dependency(session: dict[str, Any] = Depends(require_session)) -> dict[str, Any]:
        if session.get("role") not in roles:
            raise HTTPException(status_code=403, detail="Not allowed for this account.")
        return session

    return _dependency


require_admin = require_role("admin")
