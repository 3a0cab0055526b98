from sqlalchemy.orm import Session

from fleet_venue.models.employee import Employee
from fleet_venue.models.module import Module
from fleet_venue.models.role import Role, RoleName
from fleet_venue.models.user import User
from fleet_venue.schemas.user import (
    UserCreateRequest, UserUpdateRequest, ModuleCreateRequest,
)
from fleet_venue.services.query_builder import QueryFilter, Equals, Contains
from fleet_venue.services.session_registry import session_registry
from fleet_venue.utils.security import hash_password
from fleet_venue.utils.audit import log_action
from fleet_venue.utils.exceptions import (
    NotFoundException, DuplicateEntryException, ForbiddenException, ValidationException,
)


def _serialize_user(u: User) -> dict:
    return {
        "id":             u.id,
        "name":           u.name,
        "email":          u.email,
        "role":           u.role.name.value,
        "employeeId":     u.employeeId,
        "isActive":       u.isActive,
        "isLocked":       u.isLocked,
        "failedAttempts": u.failedAttempts,
        "modules":        u.module_codes,
        "lastLoginAt":    u.lastLoginAt.isoformat() if u.lastLoginAt else None,
        "createdAt":      u.createdAt.isoformat() if u.createdAt else None,
    }


def _serialize_module(m: Module) -> dict:
    return {"id": m.id, "code": m.code, "name": m.name, "description": m.description}


class UserService:

    def _get(self, db: Session, user_id: int) -> User:
        u = db.query(User).filter(User.id == user_id).first()
        if not u:
            raise NotFoundException("User")
        return u

    def _role(self, db: Session, name: RoleName) -> Role:
        role = db.query(Role).filter(Role.name == name).first()
        if not role:
            raise NotFoundException("Role")
        return role

    def _modules(self, db: Session, codes: list[str]) -> list[Module]:
        if not codes:
            return []
        found = db.query(Module).filter(Module.code.in_(codes)).all()
        missing = sorted(set(codes) - {m.code for m in found})
        if missing:
            raise ValidationException(f"Unknown module(s): {', '.join(missing)}", field="modules", details=missing)
        return found

    def _check_employee(self, db: Session, employee_id: int | None, exclude_user_id: int | None = None):
        if employee_id is None:
            return
        if not db.query(Employee).filter(Employee.id == employee_id).first():
            raise NotFoundException("Employee")
        q = db.query(User).filter(User.employeeId == employee_id)
        if exclude_user_id: q = q.filter(User.id != exclude_user_id)
        if q.first():
            raise DuplicateEntryException("Employee is already linked to another user", field="employeeId")

    # ─── List / get ───────────────────────────────────────────────────────────
    def list_users(
        self, db: Session, page: int, limit: int,
        search: str | None, role: RoleName | None, is_active: bool | None,
    ) -> tuple[list[dict], int]:
        q = db.query(User).join(User.role)
        q = QueryFilter(
            Contains([User.name, User.email], search),
            Equals(Role.name, role),
            Equals(User.isActive, is_active),
        ).apply(q)
        total = q.count()
        users = q.order_by(User.createdAt.desc(), User.id.desc()).offset((page - 1) * limit).limit(limit).all()
        return [_serialize_user(u) for u in users], total

    def get_user(self, db: Session, user_id: int) -> dict:
        return _serialize_user(self._get(db, user_id))

    # ─── Create / update / delete ─────────────────────────────────────────────
    def create_user(self, db: Session, data: UserCreateRequest, actor: User) -> dict:
        email = str(data.email).lower()
        if db.query(User).filter(User.email == email).first():
            raise DuplicateEntryException("Email already registered", field="email")
        self._check_employee(db, data.employeeId)

        u = User(
            name=data.name,
            email=email,
            password=hash_password(data.password),
            roleId=self._role(db, data.role).id,
            employeeId=data.employeeId,
            isActive=True,
        )
        u.modules = self._modules(db, sorted({m.strip().upper() for m in data.modules if m.strip()}))
        db.add(u)
        db.flush()
        log_action(db, actor.id, "CREATE", "User", u.id, f"Admin created user {u.name} ({u.email})")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    def update_user(self, db: Session, user_id: int, data: UserUpdateRequest, actor: User) -> dict:
        u = self._get(db, user_id)
        if data.email and str(data.email).lower() != u.email:
            if db.query(User).filter(User.email == str(data.email).lower(), User.id != user_id).first():
                raise DuplicateEntryException("Email already used by another user", field="email")
        if data.employeeId and data.employeeId != u.employeeId:
            self._check_employee(db, data.employeeId, exclude_user_id=u.id)
        if data.isActive is False and u.id == actor.id:
            raise ForbiddenException("You cannot deactivate your own account")

        if data.name:                  u.name       = data.name
        if data.email:                 u.email      = str(data.email).lower()
        if data.role:                  u.roleId     = self._role(db, data.role).id
        if data.employeeId:            u.employeeId = data.employeeId
        if data.password:              u.password   = hash_password(data.password)
        if data.isActive is not None:
            u.isActive = data.isActive
            if not u.isActive:
                session_registry.close(db, u.id)

        log_action(db, actor.id, "UPDATE", "User", u.id, f"Admin updated user {u.name}")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    def delete_user(self, db: Session, user_id: int, actor: User) -> None:
        u = self._get(db, user_id)
        if u.id == actor.id:
            raise ForbiddenException("You cannot delete your own account")
        log_action(db, actor.id, "DELETE", "User", u.id, f"Admin deleted user {u.name} ({u.email})")
        db.delete(u)
        db.commit()

    def unlock_user(self, db: Session, user_id: int, actor: User) -> dict:
        u = self._get(db, user_id)
        u.isLocked = False
        u.failedAttempts = 0
        log_action(db, actor.id, "UNLOCK", "User", u.id, f"Admin unlocked user {u.name}")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    # ─── Modules ──────────────────────────────────────────────────────────────
    def assign_modules(self, db: Session, user_id: int, codes: list[str], actor: User) -> dict:
        """Replace the user's module grants with exactly ``codes``."""
        u = self._get(db, user_id)
        before = u.module_codes
        u.modules = self._modules(db, codes)
        log_action(db, actor.id, "ASSIGN_MODULES", "User", u.id,
                   f"Modules {', '.join(before) or '-'} -> {', '.join(codes) or '-'}")
        db.commit()
        db.refresh(u)
        return _serialize_user(u)

    def list_modules(self, db: Session) -> list[dict]:
        return [_serialize_module(m) for m in db.query(Module).order_by(Module.code).all()]

    def create_module(self, db: Session, data: ModuleCreateRequest, actor: User) -> dict:
        if db.query(Module).filter(Module.code == data.code).first():
            raise DuplicateEntryException(f"Module {data.code} already exists", field="code")
        m = Module(code=data.code, name=data.name, description=data.description)
        db.add(m)
        db.flush()
        log_action(db, actor.id, "CREATE", "Module", m.id, f"Created module {m.code}")
        db.commit()
        db.refresh(m)
        return _serialize_module(m)

    def list_roles(self, db: Session) -> list[dict]:
        return [{"id": r.id, "name": r.name.value} for r in db.query(Role).order_by(Role.id).all()]


user_service = UserService()
