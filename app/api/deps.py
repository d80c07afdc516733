# backend/app/api/deps.py

import logging
from datetime import tzinfo
from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt
from jose.exceptions import JWTError, ExpiredSignatureError, JWTClaimsError
from app.core.config import settings
from app.core.errors import AuthenticationError, ForbiddenError, NotFoundError
from app.db.session import get_store
from app.db.store import DocumentStore
from app.schemas.user import User
from app.services.dashboard_service import DashboardService
from app.services.form_service import FormService
from app.services.question_service import QuestionService, is_valid_id
from app.services.response_service import ResponseService
from app.services.user_service import UserService
from app.utils.time_windows import resolve_timezone
from typing import Optional

logger = logging.getLogger(__name__)
security = HTTPBearer(auto_error=False)

def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    store: DocumentStore = Depends(get_store),
) -> User:
    if credentials is None:
        raise AuthenticationError("Not authenticated")
    token = credentials.credentials
    try:
        # Log only the first 10 characters of the token for security
        logger.debug(f"Received token: {token[:10]}...")
        options = {"verify_aud": settings.JWT_AUDIENCE is not None}
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.ALGORITHM],
            audience=settings.JWT_AUDIENCE,
            options=options,
        )
    except ExpiredSignatureError:
        logger.warning("Token has expired")
        raise AuthenticationError("Token has expired")
    except JWTClaimsError as e:
        logger.error(f"JWT claims error: {e}")
        raise AuthenticationError(f"Invalid claims: {e}")
    except JWTError as e:
        logger.error(f"JWT error: {e}")
        raise AuthenticationError("Could not validate credentials")

    user_id: Optional[str] = payload.get("sub")
    if not is_valid_id(user_id):
        logger.warning("Invalid token payload")
        raise AuthenticationError("Could not validate credentials")

    # Deleted users keep their rows but lose access
    record = store.find_one("users", {"id": user_id})
    if record is None:
        logger.warning(f"Token for unknown or deleted user {user_id}")
        raise NotFoundError("User not found")

    logger.info(f"User authenticated: {user_id}")
    return User(
        id=record["id"],
        name=record["name"],
        email=record["email"],
        role=record["role"],
        anonymous=record.get("anonymous", False),
    )

def require_roles(*roles: str):
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            logger.warning(f"User {current_user.id} with role {current_user.role} denied, needs one of {roles}")
            raise ForbiddenError("Access denied")
        return current_user
    return checker

def get_timezone(x_timezone: Optional[str] = Header(None)) -> tzinfo:
    return resolve_timezone(x_timezone)

def get_user_service(store: DocumentStore = Depends(get_store)) -> UserService:
    return UserService(store)

def get_question_service(store: DocumentStore = Depends(get_store)) -> QuestionService:
    return QuestionService(store)

def get_form_service(store: DocumentStore = Depends(get_store)) -> FormService:
    return FormService(store)

def get_response_service(store: DocumentStore = Depends(get_store)) -> ResponseService:
    return ResponseService(store)

def get_dashboard_service(store: DocumentStore = Depends(get_store)) -> DashboardService:
    return DashboardService(store)
