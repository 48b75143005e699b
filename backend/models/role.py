# backend/models/role.py
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, func
from sqlalchemy.orm import relationship
from database import Base


# Named permission bundle; exactly one row (the provisioned Admin role) is protected
class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, nullable=False, index=True)
    description = Column(String, nullable=False, default="")

    # Set by provisioning only; protected roles cannot be renamed, deleted or re-granted
    is_protected = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    grants = relationship(
        "RoleModule",
        back_populates="role",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RoleModule.module",
    )


# Grants a role access to one module from the catalog
class RoleModule(Base):
    __tablename__ = "role_modules"
    __table_args__ = (UniqueConstraint("role_id", "module", name="uq_role_modules_role_module"),)

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    module = Column(String(50), nullable=False)

    role = relationship("Role", back_populates="grants")
