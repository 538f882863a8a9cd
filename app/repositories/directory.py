from typing import Dict, Optional

from sqlalchemy import func

from app.models.department import Department
from app.models.organization import Organization
from app.models.user import ADMIN_ROLES, User
from app.repositories.base import Repository


class OrganizationRepository(Repository[Organization]):
    model = Organization
    conflict_message = "Organization with this code already exists"

    def find_by_code(self, code: str) -> Optional[Organization]:
        return self.db.query(Organization).filter(Organization.code == code).first()

    def count_dependents(self, entity: Organization) -> Dict[str, int]:
        departments = self.db.query(func.count(Department.id)).filter(
            Department.organization_id == entity.id
        ).scalar()
        users = self.db.query(func.count(User.id)).filter(
            User.organization_id == entity.id,
            User.role.notin_(ADMIN_ROLES)
        ).scalar()
        admins = self.db.query(func.count(User.id)).filter(
            User.organization_id == entity.id,
            User.role.in_(ADMIN_ROLES)
        ).scalar()
        return {"departments": departments or 0, "users": users or 0, "admins": admins or 0}


class DepartmentRepository(Repository[Department]):
    model = Department
    conflict_message = "Department with this code already exists in the organization"

    def find_by_code(self, code: str, organization_id: int) -> Optional[Department]:
        return self.db.query(Department).filter(
            Department.code == code,
            Department.organization_id == organization_id
        ).first()

    def find_roots(self, organization_id: Optional[int] = None):
        query = self.db.query(Department).filter(Department.parent_id.is_(None))
        if organization_id is not None:
            query = query.filter(Department.organization_id == organization_id)
        return query.order_by(Department.id).all()

    def count_dependents(self, entity: Department) -> Dict[str, int]:
        members = self.db.query(func.count(User.id)).filter(User.department_id == entity.id).scalar()
        sub_departments = self.db.query(func.count(Department.id)).filter(
            Department.parent_id == entity.id
        ).scalar()
        return {"members": members or 0, "subDepartments": sub_departments or 0}


class UserRepository(Repository[User]):
    model = User
    conflict_message = "User with this email already exists"

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()
