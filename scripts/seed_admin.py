"""
Bootstrap a database with the DEFAULT organization and a super admin.

    SEED_ADMIN_EMAIL=root@example.com SEED_ADMIN_PASSWORD=... python -m scripts.seed_admin

Safe to re-run: existing rows are left untouched.
"""
import logging
import os

from app.core.logging import setup_logging
from app.database import init_db, session_scope
from app.models.user import UserRole
from app.repositories import OrganizationRepository, UserRepository
from app.services import auth as auth_service

logger = logging.getLogger("scripts.seed_admin")

DEFAULT_ORG_CODE = "DEFAULT"


def seed(email: str, password: str) -> None:
    init_db()
    with session_scope() as db:
        orgs = OrganizationRepository(db)
        org = orgs.find_by_code(DEFAULT_ORG_CODE)
        if org is None:
            org = orgs.create(code=DEFAULT_ORG_CODE, name="Default Organization")
            logger.info("Created organization", extra={"code": org.code})

        users = UserRepository(db)
        if users.find_by_email(email) is not None:
            logger.info("Super admin already present", extra={"email": email})
            return
        users.create(
            email=email,
            hashed_password=auth_service.get_password_hash(password),
            name="Platform Admin",
            role=UserRole.SUPER_ADMIN,
            organization_id=org.id,
            is_active=True,
        )
        logger.info("Created super admin", extra={"email": email})


if __name__ == "__main__":
    setup_logging(fmt="text")
    seed(
        os.getenv("SEED_ADMIN_EMAIL", "admin@example.com"),
        os.getenv("SEED_ADMIN_PASSWORD", "ChangeMe123!"),
    )
