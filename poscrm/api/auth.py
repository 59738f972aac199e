from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from poscrm.application.schemas import LoginRequest
from poscrm.application.security import create_access_token
from poscrm.application.user_service import UserService, user_dict
from poscrm.infrastructure.db import get_db

router = APIRouter(prefix="/api/auth", tags=["auth"])

@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    user = UserService(db).authenticate(payload.email.lower(), payload.password)
    return {
        "message": "Login successful",
        "token": create_access_token(user.id, user.role),
        "user": user_dict(user),
    }
