"""
Authentication routes
Handles user login, registration, and user information retrieval
"""
from fastapi import APIRouter

from teachclone.api.auth import LoginRequest, RegisterRequest, Token, login_for_access_token
from teachclone.api.dependencies import CurrentUser, DBSession
from teachclone.api.responses import raise_for_result
from teachclone.models.teachclone_models import RegisterResult, UserSchema
from teachclone.services.accounts import register_user

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=Token)
async def login(login_data: LoginRequest, db: DBSession):
    """Login endpoint"""
    return login_for_access_token(db, login_data)


@router.post("/register", response_model=RegisterResult)
async def register(register_data: RegisterRequest, db: DBSession):
    """
    Register a student or teacher

    Students are approved immediately, teachers wait for an administrator.
    """
    result = register_user(db, register_data.full_name, register_data.email,
                           register_data.password, register_data.role)
    return raise_for_result(result)


@router.get("/me", response_model=UserSchema)
async def get_current_user_info(current_user: CurrentUser):
    """Get current user information"""
    return UserSchema.model_validate(current_user)
