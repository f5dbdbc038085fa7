"""
OneSim Backend: User SQLAlchemy Model
=====================================

What:  ORM model for the `users` table (students and teachers).
Who:   Used by UserService for signup, login and the student listing.
When:  Created at signup; read at login. Never updated in this service.
"""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from onesim.database import Base


class User(Base):
    """
    An account on the platform.

    `password` holds a bcrypt hash, never the plain text. `role` is a free
    string column; the API filters on it but enforces nothing else.
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(50), nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
