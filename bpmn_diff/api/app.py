"""
FastAPI application for the bpmn-diff comparison service.

Serves diagram comparison, element extraction and change history
derivation under ``/api/v1``. Allowed CORS origins come from
``BPMN_DIFF_CORS_ORIGINS`` (comma-separated, default ``*``).
"""

import os
from typing import List

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from bpmn_diff import __version__
from bpmn_diff.api.comparison_routes import get_base_config
from bpmn_diff.api.comparison_routes import router as comparison_router
from bpmn_diff.core.observability import ObservabilityManager

SERVICE_NAME = "bpmn-diff Comparison API"


def _cors_origins() -> List[str]:
    raw = os.getenv("BPMN_DIFF_CORS_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()] or ["*"]


def create_app() -> FastAPI:
    """Build the API application and set up observability for the process."""
    ObservabilityManager.initialize(get_base_config().observability_config())

    application = FastAPI(
        title=SERVICE_NAME,
        description="REST API for structural comparison of BPMN 2.0 diagrams",
        version=__version__,
    )

    origins = _cors_origins()
    application.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Credentials cannot be combined with a wildcard origin
        allow_credentials=origins != ["*"],
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    application.include_router(comparison_router)

    @application.get("/")
    async def root():
        """Service information."""
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "endpoints": [route.path for route in comparison_router.routes],
            "docs": "/docs",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        app,
        host=os.getenv("BPMN_DIFF_HOST", "127.0.0.1"),
        port=int(os.getenv("BPMN_DIFF_PORT", "8000")),
    )
