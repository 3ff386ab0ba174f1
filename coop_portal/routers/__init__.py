from fastapi import APIRouter
from coop_portal.routers.applications import application_router
from coop_portal.routers.printing import print_router
from coop_portal.routers.documents import document_router
from coop_portal.routers.workflow import workflow_router
from coop_portal.routers.committee import committee_router

# Create API router with prefix
api_router = APIRouter(prefix="/api/v1")

# Include all routers
api_router.include_router(application_router)
api_router.include_router(print_router)
api_router.include_router(document_router)
api_router.include_router(workflow_router)
api_router.include_router(committee_router)
