"""User model."""

from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from identity_manager.database import Base
from identity_manager.models.role import RoleName, user_roles


class User(Base):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    first_name = Column(String(50), nullable=False)
    last_name = Column(String(50), nullable=False)
    phone = Column(String(20), nullable=True)
    is_privacy_enabled = Column(Boolean, default=False, nullable=False)
    avatar_filename = Column(String(255), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    roles = relationship("Role", secondary=user_roles, lazy="selectin")
    tickets = relationship("SupportTicket", back_populates="user", cascade="all, delete-orphan")

    @property
    def role_names(self) -> set[str]:
        """Names of the roles held by this user."""
        return {role.name.value for role in self.roles}

    def has_role(self, role_name: RoleName) -> bool:
        return any(role.name == role_name for role in self.roles)

    def touch(self) -> None:
        """Refresh ``updated_at`` for changes the ORM does not see as column updates."""
        self.updated_at = datetime.now(timezone.utc)

    def __repr__(self) -> str:
        """String representation of User."""
        return f"<User(id={self.id}, email={self.email})>"
