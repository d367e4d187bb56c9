from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from aetherflow.db.base import Base, TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False, index=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(128), nullable=False)
    # "user" or "admin"; only admins may read or reset process metrics
    role: Mapped[str] = mapped_column(String(16), nullable=False, default="user", server_default="user")
