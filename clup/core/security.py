# clup/core/security.py
# Request-scoped dependencies: DB session, query interface, token header auth, totem guard.
from fastapi import Depends
from fastapi.security import APIKeyHeader
from sqlalchemy.orm import Session

from clup.core.errors import InvalidTokenError
from clup.db.queries import QueryInterface
from clup.db.session import SessionLocal
from clup.services import accounts

token_header = APIKeyHeader(name="X-Auth-Token", auto_error=False)


def get_db():
    """Yields a DB session for the duration of one request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_queries(db: Session = Depends(get_db)) -> QueryInterface:
    return QueryInterface(db)


def get_current_user_id(token: str | None = Depends(token_header),
                        queries: QueryInterface = Depends(get_queries)) -> str:
    """Returns the authenticated user's id (phone number) or raises InvalidTokenError (401)."""
    return accounts.validate_token(queries, token)


def require_totem(user_id: str = Depends(get_current_user_id),
                  queries: QueryInterface = Depends(get_queries)) -> str:
    if not accounts.is_totem(queries, user_id):
        raise InvalidTokenError("Access forbidden")
    return user_id
