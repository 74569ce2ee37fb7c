from fastapi import BackgroundTasks, Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session
from adventureconnect.config import Settings
from adventureconnect.database import get_db
from adventureconnect.exceptions import Forbidden, Unauthenticated
from adventureconnect.auth.utils import verify_token
from adventureconnect.auth.service import UserService
from adventureconnect.models import ProviderProfile, Role, User
from adventureconnect.notifications import Notifier

# tokenUrl is rewritten per app to follow API_V1_STR, see main.create_app
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token", auto_error=False)

def get_settings(request: Request) -> Settings:
    return request.app.state.settings

def get_notifier(request: Request, background_tasks: BackgroundTasks) -> Notifier:
    """Notifier whose deliveries run after the response is sent"""
    return Notifier(request.app.state.notification_sender, request.app.state.settings, background_tasks)

def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> User:
    """Get current authenticated user, re-read from the database"""
    if not token:
        raise Unauthenticated("Not authenticated")

    token_data = verify_token(token, settings)

    user = UserService.get_user_by_id(db, user_id=token_data["user_id"])
    if user is None:
        raise Unauthenticated()

    return user

def require_role(required_role: Role):
    """Dependency factory gating an endpoint to one account role"""
    def checker(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role != required_role.value:
            raise Forbidden(f"Access denied. {required_role.value.title()} account required.")
        return current_user
    return checker

require_provider = require_role(Role.PROVIDER)

def get_current_provider(current_user: User = Depends(require_provider)) -> ProviderProfile:
    """Provider profile of the authenticated provider account"""
    if current_user.provider_profile is None:
        raise Forbidden("Provider profile not found")
    return current_user.provider_profile
