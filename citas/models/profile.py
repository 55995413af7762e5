from sqlalchemy import Column, Integer, String, DateTime, Boolean
from sqlalchemy.sql import func

from ..core.database import Base
from ..core.security import UserRole, role_from_profile

class Profile(Base):
    """Identity profile written by the identity provider, keyed by identity id."""
    __tablename__ = "profiles"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=True)
    full_name = Column(String(200), nullable=True)
    specialty = Column(String(100), nullable=True)

    # Free text as stored; see role_from_profile
    role = Column(String(50), nullable=True)
    is_active = Column(Boolean, default=True)

    # Timestamps
    created_at = Column(DateTime, server_default=func.now())

    @property
    def user_role(self) -> UserRole:
        return role_from_profile(self.role)

    def __repr__(self):
        return f"<Profile(id={self.id}, email='{self.email}', role='{self.role}')>"
