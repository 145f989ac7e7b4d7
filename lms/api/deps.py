"""
FastAPI dependencies for caller identity and database sessions.

Authentication happens upstream: the gateway in front of this service
verifies the caller and forwards their id in ``X-User-Id``. Here the id is
resolved to a user row, whose role drives authorization.
"""

import uuid
from typing import Annotated, Optional

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from lms.api.middleware.request_id import USER_ID_HEADER
from lms.database import get_db
from lms.kernel.models.user import User
from lms.logging_config import user_id_var
from lms.services.enrollment_service import EnrollmentService

DbSession = Annotated[AsyncSession, Depends(get_db)]


async def get_current_user(
    db: DbSession,
    x_user_id: Annotated[Optional[str], Header(alias=USER_ID_HEADER)] = None,
) -> User:
    """Get current caller or raise 401."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
        )
    try:
        user_id = uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid caller id",
        )

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )
    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User account is disabled",
        )

    user_id_var.set(str(user.id))
    return user


CurrentUser = Annotated[User, Depends(get_current_user)]


def get_enrollment_service(db: DbSession) -> EnrollmentService:
    return EnrollmentService(db)


Enrollments = Annotated[EnrollmentService, Depends(get_enrollment_service)]

