# backend/routes/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.orm import Session
from sqlalchemy import func
from utils.hashing import get_password_hash, verify_password
from utils.tokenJWT import create_access_token, get_current_user
from utils.google_client import GoogleAuthError, GoogleClient, get_google_client
from utils.audit import write_log, client_ip
from models import users as models
from schemas import user as schemas
from database import get_db

router = APIRouter(tags=["Auth"])
logger = logging.getLogger(__name__)

def _redirect_for(user: models.User) -> str:
    return "/admin/dashboard" if (user.role or "").lower() == "admin" else "/"

def _find_by_email(db: Session, email: str):
    return db.query(models.User).filter(func.lower(models.User.email) == email.strip().lower()).first()

# Register a new user
@router.post("/register", response_model=schemas.UserResponse)
def register(user: schemas.UserCreate, request: Request, db: Session = Depends(get_db)):
    # Normalize email input
    normalized_email = user.email.strip().lower()

    # Check for existing user
    if _find_by_email(db, normalized_email):
        write_log(db, user_id=None, action="REGISTER", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"email": normalized_email, "reason": "Email exists"})
        raise HTTPException(status_code=400, detail="Email already registered")

    # Create new user instance with hashed password
    new_user = models.User(
        email=normalized_email,
        password_hash=get_password_hash(user.password),
        role="user",
        first_name=user.first_name,
        last_name=user.last_name,
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)

    write_log(db, user_id=new_user.id, action="REGISTER", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": new_user.email})
    return new_user


# Authenticate user and issue JWT token
@router.post("/login", response_model=schemas.Token)
def login(payload: schemas.UserLogin, request: Request, db: Session = Depends(get_db)):
    db_user = _find_by_email(db, payload.email)

    # Validate credentials and log failure on error
    if not db_user or not verify_password(payload.password, db_user.password_hash):
        write_log(db, user_id=(db_user.id if db_user else None), action="LOGIN", resource="auth",
                  status="FAIL", ip=client_ip(request), meta={"email": payload.email})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    access_token = create_access_token(data={"sub": db_user.email, "role": db_user.role})

    write_log(db, user_id=db_user.id, action="LOGIN", resource="auth",
              status="SUCCESS", ip=client_ip(request), meta={"email": db_user.email})

    return {"access_token": access_token, "token_type": "bearer", "redirect_url": _redirect_for(db_user)}


# Sign in with a Google ID token; the first sign-in creates the account
@router.post("/auth/google", response_model=schemas.GoogleLoginResponse)
async def google_login(
    payload: schemas.GoogleLoginRequest,
    request: Request,
    db: Session = Depends(get_db),
    google: GoogleClient = Depends(get_google_client),
):
    try:
        identity = await google.verify_id_token(payload.id_token)
    except GoogleAuthError as e:
        write_log(db, user_id=None, action="LOGIN_GOOGLE", resource="auth", status="FAIL",
                  ip=client_ip(request), meta={"reason": str(e)})
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Google authentication failed")

    user = _find_by_email(db, identity.email)
    if user is None:
        first_name, _, last_name = identity.name.partition(" ")
        user = models.User(
            email=identity.email,
            password_hash=None,
            role="user",
            first_name=first_name,
            last_name=last_name,
            google_id=identity.subject,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Created new user from Google login: %s", user.email)
    elif not user.google_id:
        user.google_id = identity.subject
        db.commit()

    access_token = create_access_token(data={"sub": user.email, "role": user.role})
    write_log(db, user_id=user.id, action="LOGIN_GOOGLE", resource="auth", status="SUCCESS",
              ip=client_ip(request), meta={"email": user.email})

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "redirect_url": _redirect_for(user),
        "name": user.full_name or user.email,
        "email": user.email,
    }


# Retrieve current authenticated user details
@router.get("/me", response_model=schemas.UserResponse)
def me(current_user: models.User = Depends(get_current_user)):
    return current_user
