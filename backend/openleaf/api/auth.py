import logging
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session
from openleaf.db.session import get_db
from openleaf.models import User
from openleaf.schemas.user import AuthOut, LoginIn, RegisterIn, UserOut
from openleaf.services.auth import (
    CurrentUserId,
    RegistrationError,
    authenticate_user,
    end_session,
    register_user,
    start_session,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")


@router.post("/register", response_model=AuthOut)
def register(payload: RegisterIn, request: Request, db: Session = Depends(get_db)):
    try:
        user = register_user(db, payload.username, payload.email, payload.password)
    except RegistrationError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    start_session(request, user)
    return {"success": True, "user": user}


@router.post("/login", response_model=AuthOut)
def login(payload: LoginIn, request: Request, db: Session = Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    user = authenticate_user(db, payload.email, payload.password)
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    start_session(request, user)
    logger.info("User logged in", extra={"user_id": user.id})
    return {"success": True, "user": user}


@router.post("/logout")
def logout(request: Request):
    end_session(request)
    return {"success": True}


@router.get("/me")
def me(user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return {"user": UserOut.model_validate(user)}
