from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from greengrocer.core.config import settings
from greengrocer.core.deps import get_current_user
from greengrocer.core.limiter import limiter
from greengrocer.core.security import create_access_token, verify_password
from greengrocer.db.session import get_session
from greengrocer.models.user import AuthAccount, User
from greengrocer.schemas.auth import Token, UserOut
from greengrocer.services import audit as audit_svc

router = APIRouter()


@router.post("/login", response_model=Token)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    form: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_session),
):
    email = form.username.strip().lower()
    result = await db.execute(
        select(AuthAccount, User)
        .join(User, User.id == AuthAccount.id)
        .where(AuthAccount.email == email)
    )
    row = result.one_or_none()
    if row is None or not verify_password(form.password, row[0].password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    account, user = row
    if user.status != "active":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account disabled")

    account.last_login_at = datetime.now(timezone.utc)
    await audit_svc.log(
        db,
        action="user.login",
        entity_type="user",
        entity_id=user.id,
        actor_id=user.id,
        actor_email=user.email,
        notes=f"Login from IP {request.client.host if request.client else 'unknown'}",
    )
    await db.commit()

    return {"access_token": create_access_token(subject=str(user.id), role=user.role), "token_type": "bearer"}


@router.get("/me", response_model=UserOut)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
