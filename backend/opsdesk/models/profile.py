"""
Profile model.

One row per authenticated user; the role column drives authorization for
CMO-only endpoints.
"""

import enum

from sqlalchemy import Boolean, Column, Enum, String

from opsdesk.db_base import Base


class UserRole(str, enum.Enum):
    """Roles assigned to dashboard users."""

    CMO = "cmo"
    BRAND_MANAGER = "brand_manager"
    SALES_OPS = "sales_ops"
    MEMBER = "member"
    VIEWER = "viewer"


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(255), primary_key=True)
    role = Column(
        Enum(UserRole, values_callable=lambda enum_cls: [e.value for e in enum_cls]),
        nullable=False,
        default=UserRole.MEMBER,
    )
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    is_marketing_team = Column(Boolean, nullable=False, default=False)
    is_marketing_manager = Column(Boolean, nullable=False, default=False)

    @property
    def display_name(self) -> str:
        name = (self.full_name or self.email or "").strip()
        return name or self.id

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, role={self.role.value if self.role else None})>"
