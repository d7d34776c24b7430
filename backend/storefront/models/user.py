"""User and role models"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from storefront.core.database import Base


class Role(Base):
    """Role referenced by users; ADMIN_ROLE_ID gates privileged routes"""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(20), unique=True, nullable=False)
    description = Column(String(255), nullable=False, default="")

    def __repr__(self):
        return f"<Role(id={self.id}, name='{self.name}')>"


class User(Base):
    """User model for authentication and authorization"""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    firstname = Column(String(100), nullable=False, default="")
    lastname = Column(String(100), nullable=False, default="")
    phone_number = Column(String(32), nullable=False, default="")
    email = Column(String(255), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    is_activated = Column(Boolean, default=False, nullable=False)
    version = Column(Integer, default=1, nullable=False)  # For optimistic locking
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    role = relationship("Role")
    session = relationship(
        "UserSession", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    activation_tokens = relationship("ActivationToken", cascade="all, delete-orphan")
    reset_codes = relationship("PasswordResetCode", cascade="all, delete-orphan")
    orders = relationship("Order", back_populates="user")

    __table_args__ = (
        Index("idx_users_email", "email"),
        Index("idx_users_role", "role_id"),
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role_id={self.role_id})>"
