"""
Authentication and Authorization Module
JWT-based authentication for the TeachClone API
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from teachclone.models.database import get_db
from teachclone.models.database_models import ApprovalStatus, User, UserRole
from teachclone.models.database_service import get_user_by_email
from teachclone.models.teachclone_models import UserSchema
from teachclone.services.accounts import authenticate
from teachclone.utils.config_loader import get_settings

ALGORITHM = "HS256"

# HTTP Bearer token
security = HTTPBearer()


class Token(BaseModel):
    access_token: str
    token_type: str
    user: Optional[UserSchema] = None


class LoginRequest(BaseModel):
    email: str
    password: str
    role: Optional[UserRole] = None


class RegisterRequest(BaseModel):
    email: str
    password: str
    full_name: str
    role: UserRole = UserRole.STUDENT

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        if '@' not in v:
            raise ValueError('Invalid email format')
        return v.strip()

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        if len(v) < 6:
            raise ValueError('Password must be at least 6 characters long')
        return v

    @field_validator('full_name')
    @classmethod
    def validate_full_name(cls, v):
        if len(v.strip()) < 2:
            raise ValueError('Full name must be at least 2 characters long')
        return v.strip()


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token"""
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=ALGORITHM)


async def get_current_user(credentials: HTTPAuthorizationCredentials = Depends(security),
                           db: Session = Depends(get_db)) -> User:
    """Get current user from JWT token"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(credentials.credentials, get_settings().jwt_secret_key, algorithms=[ALGORITHM])
        email = payload.get("sub")
        if email is None:
            raise credentials_exception
    except JWTError:
        raise credentials_exception

    user = get_user_by_email(db, email)
    if user is None:
        raise credentials_exception
    if user.role != UserRole.ADMIN and user.status != ApprovalStatus.APPROVED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Account is {user.status.value}"
        )
    return user


def require_role(*roles: UserRole):
    """Dependency factory that only lets the given roles through"""
    async def role_checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Role {' or '.join(role.value for role in roles)} required"
            )
        return current_user
    return role_checker


def login_for_access_token(db: Session, login_data: LoginRequest) -> Token:
    """Login endpoint logic"""
    result = authenticate(db, login_data.email, login_data.password, login_data.role)
    if not result.success:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=result.message,
            headers={"WWW-Authenticate": "Bearer"},
        )
    access_token = create_access_token(data={"sub": result.user.email, "role": result.user.role.value})
    return Token(access_token=access_token, token_type="bearer", user=result.user)
