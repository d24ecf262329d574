"""Admin user management: customers, drivers and admins."""
import uuid
from typing import Annotated, Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.core.deps import AdminUser
from greengrocer.db.session import get_session
from greengrocer.models.user import User
from greengrocer.schemas.user import (
    PasswordUpdate,
    Role,
    UserCreate,
    UserListResponse,
    UserOut,
    UserUpdate,
)
from greengrocer.services import users as users_svc

router = APIRouter()


async def _get_or_404(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await users_svc.get_user(db, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


# ─── GET /users ───

@router.get("", response_model=UserListResponse, summary="List users with pagination (admin)")
async def list_users(
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    sort_field: str = Query(default="name"),
    sort_direction: Literal["asc", "desc"] = Query(default="asc"),
    q: str | None = Query(default=None, description="Case-insensitive match on name or email"),
    role: Role | None = Query(default=None),
):
    try:
        users, total, total_pages = await users_svc.list_users(
            db,
            page=page,
            page_size=page_size,
            sort_field=sort_field,
            sort_direction=sort_direction,
            q=q,
            role=role,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))

    return UserListResponse(
        items=[UserOut.model_validate(u) for u in users],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages,
    )


# ─── GET /users/{id} ───

@router.get("/{user_id}", response_model=UserOut, summary="Get a user (admin)")
async def get_user(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    return UserOut.model_validate(await _get_or_404(db, user_id))


# ─── POST /users ───

@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user with a login account (admin)",
)
async def create_user(
    body: UserCreate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    try:
        user = await users_svc.create_user(db, **body.model_dump(), actor=current_user)
    except ValueError as exc:
        code = status.HTTP_409_CONFLICT if "already exists" in str(exc) else status.HTTP_400_BAD_REQUEST
        raise HTTPException(status_code=code, detail=str(exc))
    return UserOut.model_validate(user)


# ─── PATCH /users/{id} ───

@router.patch("/{user_id}", response_model=UserOut, summary="Update a user (admin)")
async def update_user(
    user_id: uuid.UUID,
    body: UserUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    user = await _get_or_404(db, user_id)
    changes = body.model_dump(exclude_unset=True)
    if changes.get("name") is not None and not changes["name"].strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Name is required")
    user = await users_svc.update_user(db, user, changes, actor=current_user)
    return UserOut.model_validate(user)


# ─── POST /users/{id}/toggle-status ───

@router.post("/{user_id}/toggle-status", response_model=UserOut, summary="Flip active/inactive (admin)")
async def toggle_user_status(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    user = await _get_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot deactivate yourself")
    user = await users_svc.toggle_user_status(db, user, actor=current_user)
    return UserOut.model_validate(user)


# ─── PUT /users/{id}/password ───

@router.put("/{user_id}/password", status_code=status.HTTP_204_NO_CONTENT, summary="Reset password (admin)")
async def update_password(
    user_id: uuid.UUID,
    body: PasswordUpdate,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    user = await _get_or_404(db, user_id)
    try:
        await users_svc.set_password(db, user, body.password, actor=current_user)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# ─── DELETE /users/{id} ───

@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a user (admin)")
async def delete_user(
    user_id: uuid.UUID,
    db: Annotated[AsyncSession, Depends(get_session)],
    current_user: AdminUser,
):
    user = await _get_or_404(db, user_id)
    if user.id == current_user.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot delete yourself")
    await users_svc.delete_user(db, user, actor=current_user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
