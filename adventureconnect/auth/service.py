import logging
from sqlalchemy.orm import Session, joinedload
from sqlalchemy.exc import IntegrityError
from typing import Optional, Tuple

from adventureconnect.config import Settings
from adventureconnect.exceptions import DuplicateEmail, InvalidCredentials, InvalidRole, NotFound
from adventureconnect.models import User, ProviderProfile, Role, ApprovalState
from adventureconnect.auth.schemas import UserCreate, UserUpdate
from adventureconnect.auth.utils import (
    get_password_hash, verify_password, dummy_verify, create_access_token,
)
from adventureconnect.notifications import Notifier

logger = logging.getLogger(__name__)

class UserService:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        """Get user by email"""
        return db.query(User).filter(User.email == email.lower()).first()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        """Get user by ID with provider profile"""
        return db.query(User).options(
            joinedload(User.provider_profile)
        ).filter(User.id == user_id).first()

    @staticmethod
    def issue_token(user: User, settings: Settings) -> str:
        return create_access_token(
            data={"sub": str(user.id), "email": user.email, "role": user.role},
            settings=settings,
        )

    @staticmethod
    def register(
        db: Session,
        user: UserCreate,
        settings: Settings,
        notifier: Optional[Notifier] = None,
    ) -> Tuple[User, str]:
        """Create a traveler or provider account and return it with a token"""
        try:
            role = Role(user.role)
        except ValueError:
            raise InvalidRole()

        email = user.email.lower()
        if UserService.get_user_by_email(db, email):
            raise DuplicateEmail()

        db_user = User(
            email=email,
            password_hash=get_password_hash(user.password),
            first_name=user.first_name,
            last_name=user.last_name,
            role=role.value,
        )

        try:
            db.add(db_user)
            db.flush()

            if role == Role.PROVIDER:
                approval = ApprovalState.APPROVED if settings.PROVIDER_AUTO_APPROVE else ApprovalState.PENDING
                db.add(ProviderProfile(
                    user_id=db_user.id,
                    business_name=f"{user.first_name} {user.last_name}",
                    commission_rate=settings.DEFAULT_COMMISSION_RATE,
                    approval_state=approval.value,
                    expertise=[],
                    languages=[],
                ))

            db.commit()
        except IntegrityError:
            db.rollback()
            raise DuplicateEmail()

        db_user = UserService.get_user_by_id(db, db_user.id)
        logger.info("Registered %s account %s", role.value, db_user.id)

        if notifier is not None:
            template = "welcome_provider" if role == Role.PROVIDER else "welcome_traveler"
            notifier.notify(db_user.email, template, {"first_name": db_user.first_name})

        return db_user, UserService.issue_token(db_user, settings)

    @staticmethod
    def authenticate_user(db: Session, email: str, password: str) -> User:
        """Check email and password; both failure modes raise the same error"""
        user = UserService.get_user_by_email(db, email)
        if user is None:
            dummy_verify(password)
            raise InvalidCredentials()
        if not verify_password(password, user.password_hash):
            raise InvalidCredentials()
        return user

    @staticmethod
    def login(db: Session, email: str, password: str, settings: Settings) -> Tuple[User, str]:
        user = UserService.authenticate_user(db, email, password)
        user = UserService.get_user_by_id(db, user.id)
        return user, UserService.issue_token(user, settings)

    @staticmethod
    def update_user(db: Session, user_id: int, user_update: UserUpdate) -> User:
        """Update user information"""
        db_user = UserService.get_user_by_id(db, user_id)
        if not db_user:
            raise NotFound("User not found")

        update_data = user_update.model_dump(exclude_unset=True, exclude_none=True)

        # Hash password if it's being updated
        if "password" in update_data:
            db_user.password_hash = get_password_hash(update_data.pop("password"))

        for field, value in update_data.items():
            setattr(db_user, field, value)

        db.commit()
        db.refresh(db_user)
        return db_user
