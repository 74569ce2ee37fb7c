from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from adventureconnect.config import Settings
from adventureconnect.database import get_db
from adventureconnect.auth.schemas import UserCreate, UserUpdate, UserDetail, LoginRequest, AuthResponse, Token
from adventureconnect.auth.service import UserService
from adventureconnect.auth.dependencies import get_current_user, get_notifier, get_settings
from adventureconnect.models import User
from adventureconnect.notifications import Notifier

router = APIRouter()

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
def register_user(
    user: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    notifier: Notifier = Depends(get_notifier),
):
    """Register a traveler or provider account"""
    db_user, token = UserService.register(db, user, settings, notifier)
    return AuthResponse(access_token=token, user=UserDetail.model_validate(db_user))

@router.post("/login", response_model=AuthResponse)
def login(
    login_data: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for a bearer token"""
    user, token = UserService.login(db, login_data.email, login_data.password, settings)
    return AuthResponse(access_token=token, user=UserDetail.model_validate(user))

@router.get("/me", response_model=UserDetail)
def read_users_me(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user

@router.put("/me", response_model=UserDetail)
def update_user_profile(
    user_update: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update current user profile"""
    return UserService.update_user(db=db, user_id=current_user.id, user_update=user_update)

@router.post("/token", response_model=Token)
def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """OAuth2 password flow for the interactive docs; username is the email"""
    _, token = UserService.login(db, form_data.username, form_data.password, settings)
    return Token(access_token=token)
