"""
Shared dependencies for API routes
"""
from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from teachclone.api.auth import get_current_user, require_role
from teachclone.llm.gateway import InferenceGateway
from teachclone.models.database import get_db
from teachclone.models.database_models import User, UserRole
from teachclone.utils.blob_storage import BlobStore, get_blob_store


def get_gateway() -> InferenceGateway:
    return InferenceGateway()


def get_blobs() -> BlobStore:
    return get_blob_store()


# Dependency shortcuts
CurrentUser = Annotated[User, Depends(get_current_user)]
AdminUser = Annotated[User, Depends(require_role(UserRole.ADMIN))]
TeacherUser = Annotated[User, Depends(require_role(UserRole.TEACHER))]
StudentUser = Annotated[User, Depends(require_role(UserRole.STUDENT))]
DBSession = Annotated[Session, Depends(get_db)]
Gateway = Annotated[InferenceGateway, Depends(get_gateway)]
Blobs = Annotated[BlobStore, Depends(get_blobs)]
