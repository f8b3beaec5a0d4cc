"""
Authentication routes.

Prefix: /api/auth
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from config import Settings, get_settings
from database import USERS, get_db
from dependencies import find_user_by_id, get_current_user
from errors import AuthenticationError, ConflictError, ValidationError
from schemas import AuthPayload, Envelope, SubmittedEmail, User as UserSchema, UserPublic
from security import create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

INVALID_CREDENTIALS = "Invalid credentials"


class RegisterInput(BaseModel):
    email: SubmittedEmail
    password: str = Field(..., min_length=1)


class LoginInput(BaseModel):
    email: SubmittedEmail
    password: str = Field(..., min_length=1)


def _user_public(user: Dict[str, Any]) -> UserPublic:
    return UserPublic(
        id=str(user.get("id") or user.get("_id")),
        email=user["email"],
        role=user.get("role", "user"),
        created_at=user.get("created_at"),
    )


def _auth_payload(user: Dict[str, Any], settings: Settings) -> AuthPayload:
    public = _user_public(user)
    token = create_access_token(public.id, settings)
    return AuthPayload(token=token, user=public)


@router.post("/register", response_model=Envelope[AuthPayload], status_code=status.HTTP_201_CREATED)
def register(
    payload: RegisterInput,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    if db[USERS].find_one({"email": payload.email}, {"_id": 1}):
        raise ConflictError("User already exists")

    role = "admin" if settings.is_admin_email(payload.email) else "user"
    user_model = UserSchema(
        email=payload.email,
        password_hash=hash_password(payload.password, settings),
        role=role,
    )
    doc = user_model.model_dump()
    try:
        result = db[USERS].insert_one(doc)
    except DuplicateKeyError:
        # Lost a race with a concurrent registration of the same email
        raise ConflictError("User already exists")
    doc["_id"] = result.inserted_id
    logger.info("Registered user %s with role %s", result.inserted_id, role)
    return Envelope[AuthPayload](data=_auth_payload(doc, settings))


@router.post("/login", response_model=Envelope[AuthPayload])
def login(
    payload: LoginInput,
    response: Response,
    db: Database = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    user = db[USERS].find_one({"email": payload.email})
    # Unknown email and wrong password are indistinguishable to the caller
    if not user or not verify_password(payload.password, user.get("password_hash", ""), settings):
        logger.info("Failed login attempt")
        raise ValidationError(INVALID_CREDENTIALS)
    auth = _auth_payload(user, settings)
    response.headers["Authorization"] = f"Bearer {auth.token}"
    logger.info("User %s logged in", auth.user.id)
    return Envelope[AuthPayload](data=auth)


@router.get("/verify", response_model=Envelope[UserPublic])
def verify(
    current_user: Dict[str, Any] = Depends(get_current_user),
    db: Database = Depends(get_db),
):
    user = find_user_by_id(db, current_user["id"])
    if not user:
        raise AuthenticationError("User not found")
    return Envelope[UserPublic](data=_user_public(user))
