# backend/models/users.py
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from database import Base

# Represents a user account; the role is a weak reference looked up by name on write
class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    phone = Column(String, nullable=True)
    password_hash = Column(String, nullable=False)
    company = Column(String, nullable=True)
    profile_picture_url = Column(String, nullable=True)

    # RESTRICT backs up the application-level "role still in use" check
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="RESTRICT"), nullable=True, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    role = relationship("Role", lazy="joined")

    @property
    def role_name(self):
        return self.role.name if self.role else None

    @property
    def role_description(self):
        return self.role.description if self.role else None
