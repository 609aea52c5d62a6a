# auth.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from . import schemas
from .config import Settings
from .database import get_async_session
from .security import get_settings_dep
from .services import AuthService

router = APIRouter(
    prefix="/api/v1/user",
    tags=["Authentication"],
    responses={
        400: {"model": schemas.ErrorResponse},
        401: {"model": schemas.ErrorResponse},
        409: {"model": schemas.ErrorResponse},
    },
)


def get_auth_service(
        db: AsyncSession = Depends(get_async_session),
        settings: Settings = Depends(get_settings_dep)
) -> AuthService:
    return AuthService(db, settings)


@router.post("/signup", response_model=schemas.SignupResponse, status_code=status.HTTP_201_CREATED)
async def signup(
        user: schemas.UserCreate,
        service: AuthService = Depends(get_auth_service)
):
    """Creates a new user account."""
    db_user = await service.signup(user)
    return {"message": "User created successfully.", "user_id": db_user.id}


@router.post("/login", response_model=schemas.LoginResponse)
async def login(
        credentials: schemas.UserLogin,
        service: AuthService = Depends(get_auth_service)
):
    """Exchanges an email or username plus password for a bearer token."""
    token = await service.login(credentials)
    return {"message": "Login successful.", "jwt_token": token}
