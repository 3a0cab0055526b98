from sqlalchemy import Column, Integer, String, ForeignKey, Table
from sqlalchemy.orm import relationship
from fleet_venue.database import Base


# Permission grants; replaced wholesale by PUT /users/{id}/modules
user_modules = Table(
    "user_modules",
    Base.metadata,
    Column("userId", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("moduleId", Integer, ForeignKey("modules.id", ondelete="CASCADE"), primary_key=True),
)


class ModuleCode:
    FLEET        = "FLEET"
    ROOMS        = "ROOMS"
    RESERVATIONS = "RESERVATIONS"
    USERS        = "USERS"


class Module(Base):
    __tablename__ = "modules"

    id          = Column(Integer, primary_key=True, index=True)
    code        = Column(String(50), unique=True, nullable=False)
    name        = Column(String(100), nullable=False)
    description = Column(String(255), nullable=True)

    # ─── Relationships ─────────────────────────────────────────────────────────
    users = relationship("User", secondary=user_modules, back_populates="modules")

    def __repr__(self):
        return f"<Module id={self.id} code={self.code}>"
