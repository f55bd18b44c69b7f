"""Role model and the user/role association table."""

import enum

from sqlalchemy import Column, Enum, ForeignKey, Integer, Table

from identity_manager.database import Base


class RoleName(str, enum.Enum):
    """Closed set of role names."""

    USER = "USER"
    ADMIN = "ADMIN"

    @property
    def authority(self) -> str:
        """Authority tag granted to holders of this role."""
        return f"ROLE_{self.value}"


user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id"), primary_key=True),
)


class Role(Base):
    """Lookup row for a role name. One row per name, shared by all users."""

    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(Enum(RoleName, name="role_name", native_enum=False, length=20), unique=True, nullable=False)

    def __repr__(self) -> str:
        """String representation of Role."""
        return f"<Role(id={self.id}, name={self.name})>"
