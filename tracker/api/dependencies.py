from __future__ import annotations

import logging
from typing import Annotated
from uuid import UUID

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from tracker.core.config import SETTINGS
from tracker.db.engine import async_session_factory
from tracker.repos.pg_store import PgStore
from tracker.repos.store import InMemoryStore, Store

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)

JWT_ALGORITHM = "HS256"

# Stand-in for the database when DATABASE_URL is unset. Tests clear it
# between cases.
memory_store = InMemoryStore()
_pg_store = (
    PgStore(async_session_factory) if async_session_factory is not None else None
)


def get_store() -> Store:
    if _pg_store is not None:
        return _pg_store
    return memory_store


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def require_learner(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(bearer_scheme)
    ],
) -> UUID:
    """Verify the bearer token and return the learner id from ``sub``.

    Tokens are issued elsewhere; this service only checks the HS256
    signature and expiry.
    """
    if credentials is None:
        raise _unauthorized("Not authenticated")
    try:
        claims = jwt.decode(
            credentials.credentials,
            SETTINGS.jwt_secret,
            algorithms=[JWT_ALGORITHM],
            options={"require": ["sub"]},
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Expired token rejected")
        raise _unauthorized("Token expired") from None
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token rejected: %s", e)
        raise _unauthorized("Invalid token") from None

    try:
        learner_id = UUID(str(claims["sub"]))
    except ValueError:
        logger.warning("Token subject is not a learner id")
        raise _unauthorized("Invalid token") from None

    logger.debug("Token validated for learner=%s", learner_id)
    return learner_id


Learner = Annotated[UUID, Depends(require_learner)]
StoreDep = Annotated[Store, Depends(get_store)]
