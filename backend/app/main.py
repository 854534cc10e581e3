"""
Vehicle Offer Case Engine - FastAPI Application

Main entry point for the case engine backend.

Architecture:
- CaseStateMachine → stage statuses (7-stage workflow)
- CaseWorkflow → StageTimeTracker (stage being closed)
- Completion → DocumentAssembler → PdfRenderer → storage → webhook
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .config import get_settings
from .routers import cases_router
from .database import init_db

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize database on startup."""
    init_db()
    yield

# Create FastAPI app
app = FastAPI(
    lifespan=lifespan,
    title="Vehicle Offer Case Engine",
    description="""
    Vehicle Offer Case Engine - Acquisition Workflow Backend

    Tracks vehicle acquisition cases through a seven-stage workflow and
    generates the documents that accompany each purchase.

    ## Workflow
    1. **Intake** → **Schedule Inspection** → **Inspection**
    2. **Quote Preparation** → **Offer Decision**
    3. **Paperwork** → **Completion**

    ## Key Principles
    - Stage statuses follow one rule: before target complete, target active, after pending
    - Stage time is replaced, never added twice; the case total always reconciles
    - Documents are structured models first, rendered to PDF only for delivery
    - Delivery is best effort and never fails a case transition
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(cases_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Vehicle Offer Case Engine",
        "version": "1.0.0",
        "description": "Vehicle acquisition case workflow and document generation",
        "docs": "/docs",
        "stages": [
            "intake",
            "scheduleInspection",
            "inspection",
            "quotePreparation",
            "offerDecision",
            "paperwork",
            "completion",
        ],
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


# For running with: python -m app.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8001)
