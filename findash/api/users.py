from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError

from findash.api import auth
from findash.api.deps import CurrentUser, Page, SessionDep, require_admin
from findash.db import models
from findash.schemas.users import ProfileUpdate, User, UserList

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=User)
async def get_profile(user: CurrentUser) -> User:
    return User.model_validate(user)


@router.put("/profile", response_model=User)
async def update_profile(body: ProfileUpdate, user: CurrentUser, session: SessionDep) -> User:
    taken = HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already in use")
    changes = body.changes()
    email = changes.get("email")
    if email and await auth.email_taken(session, email, exclude_user_id=user.id):
        raise taken

    for name, value in changes.items():
        setattr(user, name, value)
    try:
        await session.commit()
    except IntegrityError as exc:
        await session.rollback()
        raise taken from exc
    await session.refresh(user)
    return User.model_validate(user)


@router.get("", response_model=UserList, dependencies=[Depends(require_admin)])
async def list_users(
    session: SessionDep,
    page: Page,
    search: Annotated[str | None, Query()] = None,
) -> UserList:
    filters = []
    if search and search.strip():
        needle = search.strip().lower()
        filters.append(
            or_(
                func.lower(models.User.name).contains(needle, autoescape=True),
                func.lower(models.User.email).contains(needle, autoescape=True),
            )
        )

    stmt = (
        select(models.User)
        .where(*filters)
        .order_by(models.User.created_at.desc(), models.User.id.desc())
        .offset(page.offset)
        .limit(page.limit)
    )
    count_stmt = select(func.count()).select_from(models.User).where(*filters)

    users = (await session.scalars(stmt)).all()
    total = await session.scalar(count_stmt) or 0
    return UserList(users=[User.model_validate(u) for u in users], pagination=page.meta(total))
