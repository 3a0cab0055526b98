from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, TIMESTAMP
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from fleet_venue.database import Base
from fleet_venue.models.module import user_modules


class User(Base):
    __tablename__ = "users"

    id             = Column(Integer, primary_key=True, index=True)
    name           = Column(String(150), nullable=False)
    email          = Column(String(255), unique=True, nullable=False, index=True)
    password       = Column(String(255), nullable=False)
    roleId         = Column(Integer, ForeignKey("roles.id"), nullable=False)
    employeeId     = Column(Integer, ForeignKey("employees.id"), unique=True, nullable=True)
    isActive       = Column(Boolean, default=True, nullable=False)
    isLocked       = Column(Boolean, default=False, nullable=False)
    failedAttempts = Column(Integer, default=0, nullable=False)
    lastLoginAt    = Column(TIMESTAMP(timezone=True), nullable=True)
    createdAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updatedAt      = Column(TIMESTAMP(timezone=True), server_default=func.now(),
                            onupdate=func.now(), nullable=False)

    # ─── Relationships ─────────────────────────────────────────────────────────
    role       = relationship("Role", back_populates="users")
    employee   = relationship("Employee", back_populates="user")
    modules    = relationship("Module", secondary=user_modules, back_populates="users")
    session    = relationship("UserSession", back_populates="user", uselist=False,
                              cascade="all, delete-orphan")
    audit_logs = relationship("AuditLog", back_populates="user")

    @property
    def module_codes(self) -> list[str]:
        return sorted(m.code for m in self.modules)

    def __repr__(self):
        return f"<User id={self.id} email={self.email} role={self.roleId}>"
