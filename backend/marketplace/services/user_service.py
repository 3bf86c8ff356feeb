from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from marketplace.db_models import User
from marketplace.models.user import UserCreate
from marketplace.services.errors import Conflict
from marketplace.utils.logger import logger


class UserService:

    def create_user(self, db: Session, user_data: UserCreate) -> User:
        user = User(
            email=user_data.email.lower(),
            name=user_data.name,
            business_name=user_data.business_name,
            provider=user_data.provider,
            provider_id=user_data.provider_id,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            logger.warning(f"User creation failed: Email already exists - {user_data.email}")
            raise Conflict("Email already in use")
        db.refresh(user)
        logger.info(f"Created user: {user.email} (provider: {user.provider})")
        return user

    def get_user_by_email(self, db: Session, email: str) -> Optional[User]:
        return db.query(User).filter(User.email == email.lower()).first()

    def get_user_by_id(self, db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()


user_service = UserService()
