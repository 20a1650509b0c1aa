from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from app.data.models.user import UserModel
from app.repos.user_repo import UserRepo
from app.domain.errors import InvalidCredentials, UserAlreadyExists, UserNotFound
from app.domain.schemas import TokenOut, UserLogin, UserRegister
from app.utils.security import create_access_token, hash_password, verify_password
from app.utils.logging import get_logger

logger = get_logger(__name__)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


class UserService:
    def __init__(self, db: Session):
        self.repo = UserRepo(db)

    def register(self, payload: UserRegister) -> TokenOut:
        email = _normalize_email(payload.email)
        if self.repo.get_user_by_email(email):
            raise UserAlreadyExists()

        user = UserModel(
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=email,
            password_hash=hash_password(payload.password),
        )
        try:
            created = self.repo.create_user(user)
        except IntegrityError:
            #same email registered concurrently
            self.repo.rollback()
            raise UserAlreadyExists()

        logger.info(f"Registered user {created.id}")
        return TokenOut(access_token=create_access_token(created))

    def login(self, payload: UserLogin) -> TokenOut:
        user = self.repo.get_user_by_email(_normalize_email(payload.email))
        if not user or not verify_password(payload.password, user.password_hash):
            raise InvalidCredentials()

        return TokenOut(access_token=create_access_token(user))

    def get_user_by_email(self, email: str) -> UserModel:
        user = self.repo.get_user_by_email(_normalize_email(email))
        if not user:
            raise UserNotFound()
        return user
