from typing import List, Optional

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.schemas import ApiResponse
from app.database import get_db
from app.models.user import User
from app.routers.auth_deps import require_action, scoped_organization_id, validate_organization_access
from app.schemas.organization import (
    DependentCounts,
    OrganizationCreate,
    OrganizationResponse,
    OrganizationUpdate,
)
from app.services.authorization import Action
from app.services.directory import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


def _render(org, counts=None) -> OrganizationResponse:
    response = OrganizationResponse.model_validate(org)
    if counts is not None:
        response.counts = DependentCounts(**counts)
    return response


@router.post("", response_model=ApiResponse[OrganizationResponse], status_code=status.HTTP_201_CREATED)
def create_organization(
    data: OrganizationCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_CREATE)),
):
    org = OrganizationService(db).create(data)
    db.commit()
    db.refresh(org)
    return ApiResponse.ok(_render(org), message="Organization created successfully")


@router.get("", response_model=ApiResponse[List[OrganizationResponse]])
def list_organizations(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_READ)),
):
    org_filter = scoped_organization_id(current_user, None)
    rows = OrganizationService(db).list_with_counts(org_filter)
    return ApiResponse.ok([_render(org, counts) for org, counts in rows])


@router.get("/{organization_id}", response_model=ApiResponse[OrganizationResponse])
def get_organization(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_READ)),
):
    service = OrganizationService(db)
    org = service.get(organization_id)
    validate_organization_access(current_user, org.id)
    return ApiResponse.ok(_render(org, service.repo.count_dependents(org)))


@router.put("/{organization_id}", response_model=ApiResponse[OrganizationResponse])
def update_organization(
    organization_id: int,
    data: OrganizationUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_UPDATE)),
):
    service = OrganizationService(db)
    validate_organization_access(current_user, service.get(organization_id).id)
    org = service.update(organization_id, data)
    db.commit()
    db.refresh(org)
    return ApiResponse.ok(_render(org), message="Organization updated successfully")


@router.delete("/{organization_id}", response_model=ApiResponse[Optional[dict]])
def delete_organization(
    organization_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_action(Action.ORGANIZATION_DELETE)),
):
    service = OrganizationService(db)
    # Existence first so a missing id reads as 404, not 403
    validate_organization_access(current_user, service.get(organization_id).id)
    service.delete(organization_id)
    db.commit()
    return ApiResponse.ok(message="Organization deleted successfully")
