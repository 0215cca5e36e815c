"""
User Manager: user profiles keyed by device id

The device id is supplied by the client and is also the entrant identity
used in every event's tracker.
"""
from sqlalchemy.orm import Session
from typing import List, Optional
import logging

from models import User, UserRole
from core.exceptions import InvalidEntrantIdentity, UserNotFound
from database import transactional

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = ("name", "email", "phone_number", "role", "tags")


class UserManager:
    """User profile manager"""

    @staticmethod
    @transactional
    def add_user(
        db: Session,
        device_id: str,
        name: str,
        email: str,
        phone_number: Optional[str] = None,
        role: str = UserRole.ENTRANT
    ) -> User:
        """
        Create a user, or overwrite the profile if the device id already exists

        Notification history and tags of an existing user are kept.

        Raises:
            InvalidEntrantIdentity: device_id is empty
            ValueError: unknown role
        """
        if not device_id or not device_id.strip():
            raise InvalidEntrantIdentity(device_id)
        if role not in UserRole.ALL:
            raise ValueError(f"Unknown role: {role}")

        user = db.query(User).filter(User.device_id == device_id).first()
        if user is None:
            user = User(device_id=device_id, notification_history=[], tags=[])
            db.add(user)
            logger.info(f"Added user {device_id}")
        else:
            logger.info(f"Overwriting user {device_id}")

        user.name = name
        user.email = email
        user.phone_number = phone_number
        user.role = role
        return user

    @staticmethod
    def get_user(db: Session, device_id: str) -> User:
        """
        Raises:
            UserNotFound: no user with this device id
        """
        user = db.query(User).filter(User.device_id == device_id).first()
        if not user:
            raise UserNotFound(device_id)
        return user

    @staticmethod
    def list_users(db: Session, role: Optional[str] = None) -> List[User]:
        query = db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        return query.order_by(User.created_at).all()

    @staticmethod
    @transactional
    def update_user(db: Session, device_id: str, **fields) -> User:
        """
        Merge the given fields into an existing profile

        Only keys in UPDATABLE_FIELDS are accepted; fields not passed (or
        passed as None) keep their stored value.

        Raises:
            UserNotFound: no user with this device id
            ValueError: unknown field or role
        """
        unknown = set(fields) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        if fields.get("role") is not None and fields["role"] not in UserRole.ALL:
            raise ValueError(f"Unknown role: {fields['role']}")

        user = UserManager.get_user(db, device_id)
        for name, value in fields.items():
            if value is not None:
                setattr(user, name, list(value) if name == "tags" else value)

        logger.info(f"Updated user {device_id}: {sorted(k for k, v in fields.items() if v is not None)}")
        return user

    @staticmethod
    @transactional
    def add_notification(db: Session, device_id: str, message: str) -> User:
        """
        Append a message to the user's notification history

        Raises:
            UserNotFound: no user with this device id
        """
        user = UserManager.get_user(db, device_id)
        # Reassign so the JSON column is marked dirty
        user.notification_history = list(user.notification_history or []) + [message]
        return user

    @staticmethod
    @transactional
    def delete_user(db: Session, device_id: str) -> None:
        """
        Raises:
            UserNotFound: no user with this device id
        """
        user = UserManager.get_user(db, device_id)
        db.delete(user)
        logger.info(f"Deleted user {device_id}")
