from fastapi import APIRouter
from app.routers import auth, organizations, departments, users, leave

# Centralized API router hub
# Routers are aggregated here, and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(auth.router, tags=["Authentication"])
api_router.include_router(organizations.router, tags=["Organizations"])
api_router.include_router(departments.router, tags=["Departments"])
api_router.include_router(users.router, tags=["Users"])
api_router.include_router(leave.router, tags=["Leave"])
