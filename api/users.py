"""
User API Endpoints

Responsibilities:
1. Create / read / update / delete user profiles
2. Append to a user's notification history
"""
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session
import logging

from database import get_db
from models import User
from schemas import NotificationCreate, UserCreate, UserResponse, UserUpdate
from core.user_manager import UserManager
from core.exceptions import InvalidEntrantIdentity, UserNotFound

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


def user_response(user: User) -> UserResponse:
    return UserResponse(
        device_id=user.device_id,
        name=user.name,
        email=user.email,
        phone_number=user.phone_number,
        role=user.role,
        notification_history=list(user.notification_history or []),
        tags=list(user.tags or [])
    )


@router.post("", response_model=UserResponse)
def add_user(user_data: UserCreate, db: Session = Depends(get_db)):
    """Create a profile, or overwrite the profile of an existing device id"""
    try:
        user = UserManager.add_user(
            db,
            device_id=user_data.device_id,
            name=user_data.name,
            email=user_data.email,
            phone_number=user_data.phone_number,
            role=user_data.role
        )
        return user_response(user)

    except (InvalidEntrantIdentity, ValueError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to add user: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.get("", response_model=List[UserResponse])
def list_users(role: Optional[str] = Query(None), db: Session = Depends(get_db)):
    return [user_response(user) for user in UserManager.list_users(db, role=role)]


@router.get("/{device_id}", response_model=UserResponse)
def get_user(device_id: str, db: Session = Depends(get_db)):
    try:
        return user_response(UserManager.get_user(db, device_id))
    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")


@router.patch("/{device_id}", response_model=UserResponse)
def update_user(device_id: str, update: UserUpdate, db: Session = Depends(get_db)):
    """Merge the provided fields into the profile"""
    try:
        user = UserManager.update_user(db, device_id, **update.model_dump(exclude_unset=True))
        return user_response(user)

    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.error(f"Failed to update user {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.post("/{device_id}/notifications", response_model=UserResponse)
def add_notification(device_id: str, notification: NotificationCreate, db: Session = Depends(get_db)):
    try:
        user = UserManager.add_notification(db, device_id, notification.message)
        return user_response(user)

    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Failed to add notification for user {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")


@router.delete("/{device_id}")
def delete_user(device_id: str, db: Session = Depends(get_db)):
    try:
        UserManager.delete_user(db, device_id)
        return {"status": "ok"}

    except UserNotFound:
        raise HTTPException(status_code=404, detail="User not found")
    except Exception as e:
        logger.error(f"Failed to delete user {device_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal error")
