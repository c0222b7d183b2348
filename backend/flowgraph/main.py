# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Flowgraph API - FastAPI application factory
"""

from fastapi import FastAPI

from flowgraph import __version__
from flowgraph.api import workflows


def create_app() -> FastAPI:
    app = FastAPI(
        title="Flowgraph",
        description="Workflow graph validation and execution engine",
        version=__version__,
    )
    app.include_router(workflows.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy", "version": __version__}

    return app


app = create_app()
