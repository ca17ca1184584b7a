"""
Workflow Builder API - FastAPI application entry point.

Provides REST API for workflow CRUD, node editing, pipeline execution,
external target registration and the audit log.
"""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api import audit, execution, node_types, targets, workflows
from app.db import init_db


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database schema on startup."""
    init_db()
    yield


app = FastAPI(
    title="Workflow Builder API",
    description="Visual workflow builder backend - runs linear AI node chains",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS: production = same origin (no CORS needed); development = allow the dev frontend
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
if ENVIRONMENT == "development":
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(workflows.router, prefix="/api/workflows", tags=["workflows"])
app.include_router(execution.router, prefix="/api/workflows", tags=["execution"])
app.include_router(node_types.router, prefix="/api/node-types", tags=["node-types"])
app.include_router(targets.router, prefix="/api/targets", tags=["targets"])
app.include_router(audit.router, prefix="/api/audit", tags=["audit"])


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": "Workflow Builder API"}
