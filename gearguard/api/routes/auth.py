"""
Authentication Endpoints
User registration, login and current profile
"""
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from gearguard.core.exceptions import NotFoundError, RequestValidationFailed
from gearguard.core.security import create_access_token, get_password_hash, verify_password
from gearguard.database import get_db
from gearguard.dependencies import get_current_user
from gearguard.models.team import MaintenanceTeam
from gearguard.models.user import User
from gearguard.schemas.user import TokenResponse, UserLogin, UserRegister, UserResponse

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
def register(user_in: UserRegister, db: Session = Depends(get_db)):
    """Register a new user and return an access token"""
    email = user_in.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise RequestValidationFailed.single("email", "User with this email already exists")

    if user_in.team_id is not None and db.get(MaintenanceTeam, user_in.team_id) is None:
        raise NotFoundError("Team", user_in.team_id)

    user = User(
        name=user_in.name.strip(),
        email=email,
        hashed_password=get_password_hash(user_in.password),
        role=user_in.role,
        team_id=user_in.team_id,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"[AUTH] Registered {user.email} as {user.role.value}")

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.post("/login", response_model=TokenResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get access token with user info"""
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.warning(f"[AUTH] Failed login for {credentials.email}")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    token = create_access_token({"sub": str(user.id), "role": user.role.value})
    return TokenResponse(access_token=token, user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    """Current user profile"""
    return current_user
