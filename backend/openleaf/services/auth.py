import logging
from fastapi import Depends, HTTPException, Request, status
from passlib.context import CryptContext
from sqlalchemy import or_
from sqlalchemy.orm import Session
from openleaf.models import User

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


class RegistrationError(ValueError):
    pass


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def register_user(db: Session, username: str | None, email: str | None, password: str | None) -> User:
    if not username or not email or not password:
        raise RegistrationError("All fields are required")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise RegistrationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
    existing = db.query(User.id).filter(or_(User.email == email, User.username == username)).first()
    if existing:
        raise RegistrationError("User already exists")
    user = User(username=username, email=email, password_hash=get_password_hash(password))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered", extra={"user_id": user.id})
    return user


def authenticate_user(db: Session, email: str, password: str) -> User | None:
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(password, user.password_hash):
        return None
    return user


def start_session(request: Request, user: User) -> None:
    request.session["user_id"] = user.id
    request.session["username"] = user.username


def end_session(request: Request) -> None:
    request.session.clear()


def get_current_user_id(request: Request) -> int:
    user_id = request.session.get("user_id")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return int(user_id)


CurrentUserId = Depends(get_current_user_id)
