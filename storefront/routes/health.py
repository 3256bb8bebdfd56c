# storefront/routes/health.py
from datetime import datetime, timezone
from fastapi import APIRouter, Depends

from storefront.database import DatabaseRouter, get_router
from storefront.responses import success_response

router = APIRouter(prefix="/api", tags=["Health"])


# Report per-store connectivity; one unreachable store does not mask the others
@router.get("/health")
def health(databases: DatabaseRouter = Depends(get_router)):
    connections = databases.check_connections()
    return success_response(
        {"timestamp": datetime.now(timezone.utc).isoformat(), "databases": connections},
        message="Backend is healthy",
    )
