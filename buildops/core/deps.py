from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.orm import Session

from buildops.core.security import decode_token
from buildops.db.session import get_db
from buildops.models.user import User

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")
logger = logging.getLogger("security")


def get_current_user(
    request: Request,
    token: str = Security(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = decode_token(token)
        raw_user_id: Optional[int | str] = payload.get("sub")
        if raw_user_id is None:
            logger.info("token_missing_sub", extra={"path": request.url.path})
            raise credentials_exception
        user_id = int(raw_user_id)
    except (JWTError, ValueError, TypeError):
        logger.info("token_invalid", extra={"path": request.url.path})
        raise credentials_exception

    user = db.get(User, user_id)
    if not user or not user.is_active:
        logger.info("user_inactive_or_missing", extra={"path": request.url.path, "user_id": user_id})
        raise credentials_exception
    request.state.user_id = user.id
    return user
