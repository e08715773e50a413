from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Integer, String, create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthError, DuplicateEmailError, InvalidCredentialsError, RegistrationError
from .helpers import is_valid_email, is_valid_password
from .models import User

logger = logging.getLogger(__name__)

Base = declarative_base()


class UserRecord(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # hashed
    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc))

    def to_user(self) -> User:
        return User(id=self.id, name=self.name, email=self.email)


class UserDirectory:
    """Registration and login against the relational ``users`` table."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, expire_on_commit=False)
        Base.metadata.create_all(engine)

    @classmethod
    def from_url(cls, database_url: str) -> "UserDirectory":
        url = make_url(database_url)
        if url.get_backend_name() == "sqlite" and url.database in (None, "", ":memory:"):
            engine = create_engine(
                database_url,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(database_url)
        return cls(engine)

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> User:
        if not all(isinstance(value, str) for value in (name, email, password)):
            raise RegistrationError("Name, email, and password are required")

        name = name.strip()
        email = email.strip()

        if not name:
            raise RegistrationError("Name cannot be empty")
        if not is_valid_email(email):
            raise RegistrationError("Invalid email format")
        if not is_valid_password(password):
            raise RegistrationError("Password must be at least 6 characters long")

        with self._sessions() as session:
            if self._find(session, email) is not None:
                raise DuplicateEmailError()

            record = UserRecord(name=name, email=email, password=generate_password_hash(password))
            session.add(record)
            try:
                session.commit()
            except IntegrityError as exc:
                session.rollback()
                raise DuplicateEmailError() from exc

            logger.info("Registered user %s", record.id)
            return record.to_user()

    def authenticate(self, email: Optional[str], password: Optional[str]) -> User:
        if not isinstance(email, str) or not isinstance(password, str):
            raise AuthError("Email and password are required")

        email = email.strip()
        if not is_valid_email(email):
            raise AuthError("Invalid email format")

        with self._sessions() as session:
            record = self._find(session, email)
            if record is None or not check_password_hash(record.password, password):
                raise InvalidCredentialsError()
            return record.to_user()

    def ping(self) -> bool:
        try:
            with self._engine.connect() as connection:
                connection.execute(select(1))
        except SQLAlchemyError:
            logger.exception("Database connection failed")
            return False
        return True

    def _find(self, session: Session, email: str) -> Optional[UserRecord]:
        return session.execute(select(UserRecord).where(UserRecord.email == email)).scalar_one_or_none()


__all__ = ["UserDirectory", "UserRecord"]
