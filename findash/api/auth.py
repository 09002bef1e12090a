from fastapi import APIRouter, HTTPException, status
from loguru import logger
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from findash.api.deps import SessionDep
from findash.core.security import create_access_token, hash_password, verify_password
from findash.db import models
from findash.schemas.users import AuthResponse, LoginRequest, RegisterRequest, User

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(user: models.User) -> AuthResponse:
    token = create_access_token(user_id=user.id, email=user.email, role=user.role)
    return AuthResponse(token=token, user=User.model_validate(user))


@router.post("/login", response_model=AuthResponse)
async def login(body: LoginRequest, session: SessionDep) -> AuthResponse:
    user = await session.scalar(select(models.User).where(models.User.email == body.email))
    if user is None or not verify_password(body.password, user.password_hash):
        logger.warning("Failed login attempt", email=body.email)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    logger.info("User logged in", user_id=user.id)
    return _auth_response(user)


async def email_taken(session: AsyncSession, email: str, *, exclude_user_id: int | None = None) -> bool:
    stmt = select(models.User.id).where(models.User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(models.User.id != exclude_user_id)
    return await session.scalar(stmt) is not None


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, session: SessionDep) -> AuthResponse:
    duplicate = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User already exists")
    if await email_taken(session, body.email):
        raise duplicate

    user = models.User(
        name=body.name,
        email=body.email,
        password_hash=hash_password(body.password),
        role="user",
    )
    session.add(user)
    try:
        await session.commit()
    except IntegrityError as exc:
        # a concurrent registration won the unique index
        await session.rollback()
        logger.warning("Registration lost email race", email=body.email)
        raise duplicate from exc
    await session.refresh(user)
    logger.info("User registered", user_id=user.id)
    return _auth_response(user)
