from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.core.schemas import ApiResponse
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import require_action, scoped_organization_id, validate_organization_access
from app.schemas.department import (
    DepartmentCounts,
    DepartmentCreate,
    DepartmentResponse,
    DepartmentUpdate,
    DepartmentWithChildren,
)
from app.services.authorization import Action
from app.services.directory import DepartmentService

router = APIRouter(prefix="/departments", tags=["departments"])


@router.get("", response_model=ApiResponse[List[DepartmentResponse]])
def list_departments(
    organization_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_READ)),
):
    service = DepartmentService(db)
    org_filter = scoped_organization_id(current_user, organization_id)
    items = []
    for dept in service.list(org_filter):
        item = DepartmentResponse.model_validate(dept)
        item.counts = DepartmentCounts(**service.counts(dept))
        items.append(item)
    return ApiResponse.ok(items)


@router.get("/hierarchy", response_model=ApiResponse[List[DepartmentWithChildren]])
def department_hierarchy(
    organization_id: Optional[int] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_READ)),
):
    """Root departments with their sub-departments nested."""
    org_filter = scoped_organization_id(current_user, organization_id)
    roots = DepartmentService(db).hierarchy(org_filter)
    return ApiResponse.ok([DepartmentWithChildren.model_validate(dept) for dept in roots])


@router.get("/{department_id}", response_model=ApiResponse[DepartmentResponse])
def get_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_READ)),
):
    service = DepartmentService(db)
    dept = service.get(department_id)
    validate_organization_access(current_user, dept.organization_id)
    item = DepartmentResponse.model_validate(dept)
    item.counts = DepartmentCounts(**service.counts(dept))
    return ApiResponse.ok(item)


@router.post("", response_model=ApiResponse[DepartmentResponse], status_code=status.HTTP_201_CREATED)
def create_department(
    data: DepartmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_WRITE)),
):
    validate_organization_access(current_user, data.organization_id)
    dept = DepartmentService(db).create(data)
    db.commit()
    db.refresh(dept)
    return ApiResponse.ok(DepartmentResponse.model_validate(dept), message="Department created successfully")


@router.put("/{department_id}", response_model=ApiResponse[DepartmentResponse])
def update_department(
    department_id: int,
    data: DepartmentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_WRITE)),
):
    service = DepartmentService(db)
    validate_organization_access(current_user, service.get(department_id).organization_id)
    dept = service.update(department_id, data)
    db.commit()
    db.refresh(dept)
    return ApiResponse.ok(DepartmentResponse.model_validate(dept), message="Department updated successfully")


@router.delete("/{department_id}", response_model=ApiResponse[Optional[dict]])
def delete_department(
    department_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.DEPARTMENT_WRITE)),
):
    service = DepartmentService(db)
    validate_organization_access(current_user, service.get(department_id).organization_id)
    service.delete(department_id)
    db.commit()
    return ApiResponse.ok(message="Department deleted successfully")
