"""
Helper functions for user management with Supabase auth.
"""
from sqlalchemy.orm import Session
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from fastapi import HTTPException
from readtrack.core.config import settings
from readtrack.models import User
import logging

logger = logging.getLogger(__name__)


def get_or_create_user_by_auth_id(
    db: Session,
    auth_user_id: str,
    email: str = "",
    endpoint_path: str = "",
) -> User:
    """
    Get or create a local User record from Supabase auth_user_id.

    Supabase Auth is the source of truth; the local row is keyed by the JWT
    ``sub`` claim. A legacy row with the same email and no auth_user_id is
    linked instead of duplicated.

    Raises:
        HTTPException(409): the auth_user_id is already linked to a different email
    """
    normalized_email = email.lower().strip() if email else None

    user = db.query(User).filter(User.auth_user_id == auth_user_id).one_or_none()
    if user:
        normalized_db_email = user.email.lower().strip() if user.email else None
        if normalized_email and normalized_db_email and normalized_email != normalized_db_email:
            logger.error(
                f"[AUTH_EMAIL_MISMATCH] endpoint={endpoint_path}, "
                f"token_auth_user_id={auth_user_id}, token_email={normalized_email}, "
                f"db_email={normalized_db_email}, user_id={user.id}"
            )
            raise HTTPException(status_code=409, detail="email_mismatch_cannot_link")
        if normalized_email and not user.email:
            user.email = normalized_email
            db.commit()
            db.refresh(user)
        return user

    if normalized_email:
        legacy = db.query(User).filter(
            func.lower(User.email) == normalized_email,
            User.auth_user_id.is_(None),
        ).one_or_none()
        if legacy:
            legacy.auth_user_id = auth_user_id
            db.commit()
            db.refresh(legacy)
            logger.info(f"Linked legacy user: user_id={legacy.id}, auth_user_id={auth_user_id}")
            return legacy

    new_user = User(
        auth_user_id=auth_user_id,
        email=normalized_email,
        daily_reading_goal=settings.DEFAULT_DAILY_GOAL,
    )
    db.add(new_user)

    try:
        db.commit()
        db.refresh(new_user)
        logger.info(f"Created new user for auth_user_id={auth_user_id}, local_id={new_user.id}")
        return new_user
    except IntegrityError:
        db.rollback()
        # Race: a concurrent request created the row first
        user = db.query(User).filter(User.auth_user_id == auth_user_id).one_or_none()
        if user:
            return user
        raise
