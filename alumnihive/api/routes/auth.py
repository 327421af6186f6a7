import logging

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from alumnihive.core.auth_dependency import get_current_user_obj
from alumnihive.core.errors import AlumniHiveError, to_http_exception
from alumnihive.core.security import hash_password, verify_password, create_access_token
from alumnihive.db.models.user import User
from alumnihive.db.session import get_db
from alumnihive.schemas.auth import SignupRequest, UserResponse
from alumnihive.services.batch_service import add_user_to_batch, create_or_find_batch
from alumnihive.services.profile_service import create_default_profile

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


def user_payload(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump(by_alias=True, mode="json")


# ✅ USER SIGNUP
@router.post("/signup", status_code=status.HTTP_201_CREATED)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    """
    Register a student or alumni.

    When college and graduation year are given the user joins (or founds)
    the matching batch. A placeholder profile is created for the role.
    """
    if db.query(User).filter(User.email == payload.email).first():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")

    try:
        user = User(
            email=payload.email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name.strip(),
            last_name=payload.last_name.strip(),
            role=payload.role,
            college=payload.college,
            graduation_year=payload.graduation_year,
        )
        db.add(user)
        db.flush()

        if payload.college and payload.graduation_year:
            batch, _ = create_or_find_batch(db, payload.college, payload.graduation_year)
            add_user_to_batch(db, batch, user)
        create_default_profile(db, user)

        db.commit()
        db.refresh(user)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Email already registered")
    except AlumniHiveError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        logger.error(f"Signup failed: {e}", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to create user")

    logger.info(f"User registered: user_id={user.id}, role={user.role.value}")
    return {
        "message": "User created successfully",
        "user_id": user.id,
        "token": create_access_token({"sub": user.email}),
        "user": user_payload(user),
    }


# ✅ OAUTH2 LOGIN (Swagger sends "username", treated as email)
@router.post("/login")
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    user = db.query(User).filter(User.email == form_data.username.lower()).first()

    if not user or not verify_password(form_data.password, user.password_hash):
        logger.warning("Failed login attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    token = create_access_token({"sub": user.email})

    return {
        "access_token": token,
        "token_type": "bearer",
        "user": user_payload(user),
    }


@router.get("/me")
def me(user: User = Depends(get_current_user_obj)):
    return user_payload(user)


@router.get("/profile/{user_id}")
def get_profile(user_id: int, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user_payload(user)
