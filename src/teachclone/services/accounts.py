"""
Account registration, credential checks and the seeded admin
"""
from typing import Optional

from loguru import logger
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from teachclone.errors import StorageFailure
from teachclone.models.database_models import ApprovalStatus, User, UserRole
from teachclone.models.database_service import create_user, get_user_by_email
from teachclone.models.teachclone_models import AuthResult, RegisterResult, UserSchema
from teachclone.utils.config_loader import AppSettings, get_settings

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

SELF_REGISTER_ROLES = (UserRole.STUDENT, UserRole.TEACHER)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)


def register_user(db: Session, full_name: str, email: str, password: str, role: UserRole) -> RegisterResult:
    """
    Register a student or teacher.

    Students can log in right away; teachers wait for admin approval.
    """
    role = UserRole(role)
    if role not in SELF_REGISTER_ROLES:
        return RegisterResult(success=False, message="Admin accounts cannot be registered.",
                              error_code="validation_failure")
    if not (full_name or "").strip() or not (email or "").strip() or not password:
        return RegisterResult(success=False, message="Name, email and password are required.",
                              error_code="validation_failure")
    if get_user_by_email(db, email):
        return RegisterResult(success=False, message="Email already registered.", error_code="validation_failure")

    status = ApprovalStatus.APPROVED if role == UserRole.STUDENT else ApprovalStatus.PENDING
    try:
        user = create_user(db, email, get_password_hash(password), full_name.strip(), role, status)
    except StorageFailure as e:
        return RegisterResult(success=False, message=e.message, error_code=e.code)
    message = (
        "Registration successful! You may now login."
        if status == ApprovalStatus.APPROVED
        else "Registration successful! Your account is pending admin approval."
    )
    return RegisterResult(success=True, message=message, user=UserSchema.model_validate(user))


def authenticate(db: Session, email: str, password: str, role: Optional[UserRole] = None) -> AuthResult:
    user = get_user_by_email(db, email or "")
    if user is None or (role is not None and user.role != UserRole(role)):
        return AuthResult(success=False, message="Account not found for this role.", error_code="not_found")
    if not verify_password(password or "", user.hashed_password):
        return AuthResult(success=False, message="Invalid credentials.", error_code="validation_failure")

    if user.role != UserRole.ADMIN:
        if user.status == ApprovalStatus.PENDING:
            return AuthResult(success=False, message="Account is pending approval. Please wait for an administrator.",
                              error_code="validation_failure")
        if user.status == ApprovalStatus.REJECTED:
            return AuthResult(success=False, message="Account has been rejected.", error_code="validation_failure")

    logger.info(f"User {user.email} logged in as {user.role.value}")
    return AuthResult(success=True, message="Login successful.", user=UserSchema.model_validate(user))


def ensure_admin(db: Session, settings: Optional[AppSettings] = None) -> User:
    """Seed the configured admin account if it does not exist yet"""
    settings = settings or get_settings()
    admin = get_user_by_email(db, settings.admin_email)
    if admin is not None:
        return admin
    logger.info(f"Seeding admin account {settings.admin_email}")
    return create_user(
        db,
        settings.admin_email,
        get_password_hash(settings.admin_password),
        settings.admin_name,
        UserRole.ADMIN,
        ApprovalStatus.APPROVED,
    )
