from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint.

    Returns 503 during graceful shutdown so the load balancer stops routing traffic.
    """
    if getattr(request.app.state, "shutting_down", False):
        return JSONResponse(
            status_code=503,
            content={"status": "shutting_down", "service": "workitem-codegen"},
        )
    return {"status": "healthy", "service": "workitem-codegen"}


@router.get("/ready")
async def readiness_check(request: Request):
    """Readiness check - the pipeline and its collaborators are wired."""
    checks = {
        "pipeline": getattr(request.app.state, "pipeline", None) is not None,
        "repositories": bool(getattr(request.app.state, "repositories", None)),
    }
    all_ready = all(checks.values())
    return JSONResponse(
        status_code=200 if all_ready else 503,
        content={"status": "ready" if all_ready else "degraded", "checks": checks},
    )
