from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session
from typing import Annotated
from pydantic import ValidationError as SchemaValidationError
from app.exceptions import BookingError
from app.services.user_crud import user_crud
from app.schemas.user_schema import UserCreate, UserOut, UserLogin, LoginResponse
from app.database import get_db
from app.security.auth import get_current_active_user
from app.models.user_model import User
from app.logger import get_logger


user_router = APIRouter()
logger = get_logger(__name__)


# AUTH ENDPOINTS

@user_router.post("/auth/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    """Register a new customer or service provider"""
    try:
        logger.info(f"Registering {user.role.value}: {user.email}")
        db_user = user_crud.create_user(db, user)
        return UserOut.model_validate(db_user)

    except BookingError as e:
        raise e.to_http()
    except Exception as e:
        logger.error(f"Error registering user {user.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred while registering user"
        )


@user_router.post("/token", response_model=LoginResponse)
def user_token(
        form_data: Annotated[OAuth2PasswordRequestForm, Depends()],
        db: Session = Depends(get_db),
):
    """OAuth2 password flow, used by the interactive docs"""
    logger.info(f"Token request for user: {form_data.username}")
    try:
        user_login = UserLogin(email=form_data.username, password=form_data.password)
    except SchemaValidationError as e:
        raise RequestValidationError(e.errors(include_url=False))
    return user_crud.login_user(db, user_login)


@user_router.post("/auth/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login_user(user_login: UserLogin, db: Session = Depends(get_db)):
    """Login user and return an access token"""
    try:
        logger.info(f"Login attempt for user: {user_login.email}")
        return user_crud.login_user(db, user_login)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error during login for {user_login.email}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error occurred during login"
        )


@user_router.get("/auth/me", response_model=UserOut, status_code=status.HTTP_200_OK)
def read_current_user(current_user: User = Depends(get_current_active_user)):
    return UserOut.model_validate(current_user)
