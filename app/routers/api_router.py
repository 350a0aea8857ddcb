from fastapi import APIRouter
from app.routers import (
    employees, teams, templates, periods, users, settings,
    assignments, links, appraisals, summaries, backup
)

# Centralized API router hub
# Routers are aggregated here and main.py only imports this single hub.
api_router = APIRouter()

api_router.include_router(employees.router, prefix="/employees", tags=["Employees"])
api_router.include_router(teams.router, prefix="/teams", tags=["Teams"])
api_router.include_router(templates.router, prefix="/templates", tags=["Templates"])
api_router.include_router(periods.router, prefix="/review-periods", tags=["Review Periods"])
api_router.include_router(users.router, prefix="/users", tags=["Users"])
api_router.include_router(settings.router, prefix="/settings", tags=["Settings"])
api_router.include_router(assignments.router, prefix="/assignments", tags=["Assignments"])
api_router.include_router(links.router, prefix="/links", tags=["Links"])
api_router.include_router(appraisals.router, prefix="/appraisals", tags=["Appraisals"])
api_router.include_router(summaries.router, prefix="/summaries", tags=["Summaries"])
api_router.include_router(backup.router, prefix="/backup", tags=["Backup"])
