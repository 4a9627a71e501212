from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import Optional
from app.exceptions import InternalError, ValidationError
from app.schemas.user_schema import UserCreate, UserLogin, UserOut, LoginResponse
from app.models.user_model import User
from app.security.auth import get_password_hash, authenticate_user, create_access_token
from app.logger import get_logger

logger = get_logger(__name__)


class UserCRUD:
    @staticmethod
    def get_user_by_email(db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email).first()

    @staticmethod
    def create_user(db: Session, user: UserCreate) -> User:
        if UserCRUD.get_user_by_email(db, user.email):
            raise ValidationError("User with the email already exist")

        try:
            db_user = User(
                name=user.name,
                email=user.email,
                password_hash=get_password_hash(user.password),
                role=user.role.value,
                is_active=True,
            )
            db.add(db_user)
            db.commit()
            db.refresh(db_user)
            logger.info(f"User registered: {db_user.id} ({db_user.role})")
            return db_user

        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Error registering user {user.email}: {str(e)}")
            raise InternalError("Error occurred while registering user")

    @staticmethod
    def login_user(db: Session, user_login: UserLogin) -> LoginResponse:
        user = authenticate_user(db, user_login.email, user_login.password)
        access_token, _ = create_access_token(data={"sub": str(user.id), "role": user.role})
        logger.info(f"User logged in: {user.email}")
        return LoginResponse(
            access_token=access_token,
            token_type="bearer",
            user=UserOut.model_validate(user),
        )


user_crud = UserCRUD()
