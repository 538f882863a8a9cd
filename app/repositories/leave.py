from typing import List, Optional

from sqlalchemy import or_

from app.models.leave_policy import LeavePolicy
from app.models.leave_request import LeaveRequest
from app.repositories.base import Repository


class LeaveRequestRepository(Repository[LeaveRequest]):
    model = LeaveRequest

    def find_for_user(self, user_id: int, status: Optional[str] = None) -> List[LeaveRequest]:
        query = self.db.query(LeaveRequest).filter(LeaveRequest.user_id == user_id)
        if status:
            query = query.filter(LeaveRequest.status == status)
        return query.order_by(LeaveRequest.start_date.desc(), LeaveRequest.id.desc()).all()


class LeavePolicyRepository(Repository[LeavePolicy]):
    model = LeavePolicy
    conflict_message = "A policy for this leave type already exists"

    def for_organization(self, organization_id: Optional[int]) -> List[LeavePolicy]:
        """Global rows plus the organization's own rows."""
        query = self.db.query(LeavePolicy)
        if organization_id is None:
            query = query.filter(LeavePolicy.organization_id.is_(None))
        else:
            query = query.filter(or_(
                LeavePolicy.organization_id.is_(None),
                LeavePolicy.organization_id == organization_id
            ))
        return query.order_by(LeavePolicy.id).all()
