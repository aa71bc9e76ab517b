from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clientdesk.core.deps import auth_rate_limit, get_current_user, validated_body
from clientdesk.db.session import get_db
from clientdesk.models.user import User
from clientdesk.schemas.auth import UserLogin, UserRegister
from clientdesk.services.auth import create_access_token, login_user, register_user
from clientdesk.services.serializers import to_public_view

router = APIRouter()


@router.post("/register", status_code=201, dependencies=[Depends(auth_rate_limit)])
def register(payload: UserRegister = Depends(validated_body(UserRegister)), db: Session = Depends(get_db)):
    user = register_user(db, payload)
    return {
        "message": "User registered successfully",
        "user": to_public_view(user),
        "token": create_access_token(user),
    }


@router.post("/login", dependencies=[Depends(auth_rate_limit)])
def login(payload: UserLogin = Depends(validated_body(UserLogin)), db: Session = Depends(get_db)):
    user = login_user(db, payload)
    return {
        "message": "Login successful",
        "user": to_public_view(user),
        "token": create_access_token(user),
    }


@router.get("/profile")
def profile(user: User = Depends(get_current_user)):
    return {"user": to_public_view(user)}


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client drops its copy.
    return {"message": "Logged out successfully"}


@router.post("/refresh")
def refresh(user: User = Depends(get_current_user)):
    return {"message": "Token refreshed successfully", "token": create_access_token(user)}
