"""
Organization, department and user management.

Uniqueness is pre-checked here for friendly messages and enforced again by
the database constraints behind the repositories. Deletes of organizations
and departments go through the integrity guard.
"""
from typing import Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from app.core.exceptions import ConflictError, IntegrityViolation, NotFoundError, ValidationFailed
from app.models.department import Department
from app.models.organization import Organization
from app.models.user import User
from app.repositories.directory import DepartmentRepository, OrganizationRepository, UserRepository
from app.schemas.department import DepartmentCreate, DepartmentUpdate
from app.schemas.organization import OrganizationCreate, OrganizationUpdate
from app.schemas.user import UserCreate, UserUpdate
from app.services import auth as auth_service
from app.services.base import BaseService
from app.services.integrity import DEPARTMENT_DEPENDENTS, ORGANIZATION_DEPENDENTS, DeleteDecision, can_delete


def _field_error(field: str, message: str, code: str = "invalid_reference") -> List[dict]:
    return [{"field": field, "code": code, "message": message}]


def _enforce(decision: DeleteDecision, entity: str, entity_id: int) -> None:
    """Translate a refused delete decision into the matching API error."""
    if not decision.found:
        raise NotFoundError(entity, entity_id)
    if not decision.allowed:
        raise IntegrityViolation(decision.message, decision.blocking_reasons)


class OrganizationService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repo = OrganizationRepository(db)

    def get(self, organization_id: int) -> Organization:
        org = self.repo.find_by_id(organization_id)
        if not org:
            raise NotFoundError("Organization", organization_id)
        return org

    def list_with_counts(self, organization_id: Optional[int] = None) -> List[Tuple[Organization, Dict[str, int]]]:
        orgs = self.repo.find_many(id=organization_id)
        return [(org, self.repo.count_dependents(org)) for org in orgs]

    def create(self, data: OrganizationCreate) -> Organization:
        if self.repo.find_by_code(data.code):
            raise ConflictError("Organization with this code already exists")
        org = self.repo.create(**data.model_dump())
        self.log_info(f"Organization created: {org.code}", organization_id=org.id)
        return org

    def update(self, organization_id: int, data: OrganizationUpdate) -> Organization:
        org = self.get(organization_id)
        changes = data.model_dump(exclude_unset=True)
        new_code = changes.get("code")
        if new_code and new_code != org.code and self.repo.find_by_code(new_code):
            raise ConflictError("Organization with this code already exists")
        return self.repo.update(org, **changes)

    def check_delete(self, organization_id: int) -> DeleteDecision:
        org = self.repo.find_by_id(organization_id)
        if org is None:
            return can_delete("Organization", dict.fromkeys(ORGANIZATION_DEPENDENTS, 0), entity_found=False)
        return can_delete("Organization", self.repo.count_dependents(org))

    def delete(self, organization_id: int) -> None:
        decision = self.check_delete(organization_id)
        if decision.found and not decision.allowed:
            self.log_warning(
                f"Refused to delete organization {organization_id}",
                blocking_reasons=decision.blocking_reasons,
            )
        _enforce(decision, "Organization", organization_id)
        self.repo.delete(self.repo.find_by_id(organization_id))
        self.log_info(f"Organization deleted: {organization_id}")


class DepartmentService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repo = DepartmentRepository(db)
        self.orgs = OrganizationRepository(db)
        self.users = UserRepository(db)

    def get(self, department_id: int) -> Department:
        dept = self.repo.find_by_id(department_id)
        if not dept:
            raise NotFoundError("Department", department_id)
        return dept

    def list(self, organization_id: Optional[int] = None) -> List[Department]:
        return self.repo.find_many(organization_id=organization_id)

    def hierarchy(self, organization_id: Optional[int] = None) -> List[Department]:
        return self.repo.find_roots(organization_id)

    def counts(self, dept: Department) -> Dict[str, int]:
        return self.repo.count_dependents(dept)

    def _check_references(self, organization_id: int, parent_id: Optional[int], head_id: Optional[int],
                          department_id: Optional[int] = None) -> None:
        if parent_id is not None:
            parent = self.repo.find_by_id(parent_id)
            if parent is None or parent.organization_id != organization_id:
                raise ValidationFailed(errors=_field_error("parent_id", "Parent department not found in this organization"))
            if department_id is not None and self._is_descendant_or_self(parent, department_id):
                raise ValidationFailed(errors=_field_error(
                    "parent_id", "A department cannot be moved under itself or its sub-departments", "cycle"
                ))
        if head_id is not None:
            head = self.users.find_by_id(head_id)
            if head is None or head.organization_id != organization_id:
                raise ValidationFailed(errors=_field_error("head_id", "Department head not found in this organization"))

    @staticmethod
    def _is_descendant_or_self(candidate: Department, department_id: int) -> bool:
        node = candidate
        while node is not None:
            if node.id == department_id:
                return True
            node = node.parent
        return False

    def create(self, data: DepartmentCreate) -> Department:
        if self.orgs.find_by_id(data.organization_id) is None:
            raise NotFoundError("Organization", data.organization_id)
        if self.repo.find_by_code(data.code, data.organization_id):
            raise ConflictError("Department with this code already exists in the organization")
        self._check_references(data.organization_id, data.parent_id, data.head_id)
        dept = self.repo.create(**data.model_dump())
        self.log_info(f"Department created: {dept.code}", organization_id=dept.organization_id)
        return dept

    def update(self, department_id: int, data: DepartmentUpdate) -> Department:
        dept = self.get(department_id)
        changes = data.model_dump(exclude_unset=True)
        new_code = changes.get("code")
        if new_code and new_code != dept.code and self.repo.find_by_code(new_code, dept.organization_id):
            raise ConflictError("Department with this code already exists in the organization")
        self._check_references(
            dept.organization_id,
            changes.get("parent_id"),
            changes.get("head_id"),
            department_id=dept.id,
        )
        return self.repo.update(dept, **changes)

    def check_delete(self, department_id: int) -> DeleteDecision:
        dept = self.repo.find_by_id(department_id)
        if dept is None:
            return can_delete("Department", dict.fromkeys(DEPARTMENT_DEPENDENTS, 0), entity_found=False)
        return can_delete("Department", self.repo.count_dependents(dept))

    def delete(self, department_id: int) -> None:
        decision = self.check_delete(department_id)
        if decision.found and not decision.allowed:
            self.log_warning(
                f"Refused to delete department {department_id}",
                blocking_reasons=decision.blocking_reasons,
            )
        _enforce(decision, "Department", department_id)
        self.repo.delete(self.repo.find_by_id(department_id))
        self.log_info(f"Department deleted: {department_id}")


class UserService(BaseService):
    def __init__(self, db: Session):
        super().__init__(db)
        self.repo = UserRepository(db)
        self.orgs = OrganizationRepository(db)
        self.departments = DepartmentRepository(db)

    def get(self, user_id: int) -> User:
        user = self.repo.find_by_id(user_id)
        if not user:
            raise NotFoundError("User", user_id)
        return user

    def list(self, organization_id: Optional[int] = None) -> List[User]:
        return self.repo.find_many(organization_id=organization_id)

    def _check_references(self, organization_id: int, department_id: Optional[int],
                          reports_to_id: Optional[int], user_id: Optional[int] = None) -> None:
        if department_id is not None:
            dept = self.departments.find_by_id(department_id)
            if dept is None or dept.organization_id != organization_id:
                raise ValidationFailed(errors=_field_error("department_id", "Department not found in this organization"))
        if reports_to_id is not None:
            if user_id is not None and reports_to_id == user_id:
                raise ValidationFailed(errors=_field_error("reports_to_id", "A user cannot report to themselves", "cycle"))
            manager = self.repo.find_by_id(reports_to_id)
            if manager is None or manager.organization_id != organization_id:
                raise ValidationFailed(errors=_field_error("reports_to_id", "Manager not found in this organization"))
            if user_id is not None and self._reports_up_to(manager, user_id):
                raise ValidationFailed(errors=_field_error(
                    "reports_to_id", "A user cannot report to someone in their own reporting chain", "cycle"
                ))

    @staticmethod
    def _reports_up_to(manager: User, user_id: int) -> bool:
        """True when ``user_id`` is ``manager`` or anyone above them in the chain."""
        seen = set()
        node = manager
        while node is not None and node.id not in seen:
            if node.id == user_id:
                return True
            seen.add(node.id)
            node = node.reports_to
        return False

    def create(self, data: UserCreate) -> User:
        if self.orgs.find_by_id(data.organization_id) is None:
            raise NotFoundError("Organization", data.organization_id)
        if self.repo.find_by_email(data.email):
            raise ConflictError("User with this email already exists")
        self._check_references(data.organization_id, data.department_id, data.reports_to_id)
        values = data.model_dump(exclude={"password"})
        values["hashed_password"] = auth_service.get_password_hash(data.password)
        user = self.repo.create(**values)
        self.log_info(f"User created: {user.id}", organization_id=user.organization_id)
        return user

    def update(self, user_id: int, data: UserUpdate) -> User:
        user = self.get(user_id)
        changes = data.model_dump(exclude_unset=True)
        new_email = changes.get("email")
        if new_email and new_email != user.email and self.repo.find_by_email(new_email):
            raise ConflictError("User with this email already exists")
        self._check_references(
            user.organization_id,
            changes.get("department_id"),
            changes.get("reports_to_id"),
            user_id=user.id,
        )
        return self.repo.update(user, **changes)

    def delete(self, user_id: int) -> None:
        user = self.get(user_id)
        self.repo.delete(user)
        self.log_info(f"User deleted: {user_id}")
