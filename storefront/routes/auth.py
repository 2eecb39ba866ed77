from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.user_schemas import UserRegister, UserLogin, Token, UserResponse
from storefront.utils.hash import hash_password, verify_password
from storefront.utils.token import create_access_token
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


# -------- AUTH ROUTES --------

@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def register_user(payload: UserRegister, session: Session = Depends(get_session)):
    existing_user = session.exec(select(User).where(User.email == payload.email)).first()
    if existing_user:
        raise HTTPException(400, "Email already registered")

    user = User(
        first_name=payload.first_name,
        last_name=payload.last_name,
        username=payload.username or payload.email.split("@")[0],
        email=payload.email,
        password=hash_password(payload.password)
    )

    session.add(user)
    session.commit()
    session.refresh(user)

    logger.info(f"Registered user {user.id}")

    return UserResponse(
        message="Registration successful.",
        user_id=user.id,
        email=user.email,
        role=user.role,
        can_login=user.can_login
    )


@router.post("/login", response_model=Token)
def login(payload: UserLogin, session: Session = Depends(get_session)):
    user = session.exec(select(User).where(User.email == payload.email)).first()

    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(401, "Invalid email or password")

    if not user.can_login:
        raise HTTPException(403, "User account is disabled")

    token = create_access_token(user.id, role=user.role)
    return Token(access_token=token, token_type="bearer")
