import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.api import deps
from app.core.errors import Unauthenticated
from app.core.limiter import limiter, login_limit
from app.core.security import constant_time_verify, create_access_token
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import LoginRequest, LoginResponse
from app.schemas.common import normalize_email
from app.schemas.users import UserDetailResponse, UserOut
from app.services import users as users_service
from app.utils.rate_limit import check_login_lockout, register_login_attempt

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
@limiter.limit(login_limit)
async def login(
    credentials: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    email = normalize_email(credentials.email)
    check_login_lockout(email)

    user = await users_service.get_user_by_email(db, email)
    if not constant_time_verify(user.hashed_password if user else None, credentials.password):
        register_login_attempt(email, success=False)
        logger.info("Failed login attempt", extra={"email": email})
        raise Unauthenticated("Invalid credentials")
    if not user.is_active:
        raise Unauthenticated("Account is deactivated")

    register_login_attempt(email, success=True)
    token = create_access_token(str(user.id))
    return LoginResponse(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=UserDetailResponse)
async def read_current_user(current_user: User = Depends(deps.get_current_user)) -> UserDetailResponse:
    return UserDetailResponse(user=UserOut.model_validate(current_user))
