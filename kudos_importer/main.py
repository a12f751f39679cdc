"""FastAPI application entry point"""

from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse
import logging

from kudos_importer.config.settings import settings
from kudos_importer.errors import IssueImportError, RequestDecodeError
from kudos_importer.handler import IMPORT_FAILED_MESSAGE, INVALID_BODY_MESSAGE, SUCCESS_TEMPLATE
from kudos_importer.orchestrator import IssueImportOrchestrator
from kudos_importer.schemas.project_payload import decode_project_payload

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Imports open GitHub issues for kudos projects",
    version=settings.APP_VERSION
)

# Global orchestrator instance
orchestrator = IssueImportOrchestrator(config=settings)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "endpoints": {
            "health": "/api/health",
            "import": "POST /api/projects/import"
        }
    }


@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "service": "kudos-issue-importer",
        "version": settings.APP_VERSION
    }


@app.post("/api/projects/import", response_class=PlainTextResponse)
async def import_project(request: Request):
    """Create a project with its repositories and import their open issues"""
    raw_body = await request.body()

    try:
        project = decode_project_payload(raw_body)
    except RequestDecodeError as e:
        logger.warning(f"Rejected import request: {e}")
        return PlainTextResponse(INVALID_BODY_MESSAGE, status_code=400)

    logger.info(f"Import triggered for project: {project.slug}")

    try:
        result = await orchestrator.run_import(project)
    except IssueImportError as e:
        logger.error(f"Import failed for project {project.slug}: {type(e).__name__}")
        return PlainTextResponse(IMPORT_FAILED_MESSAGE, status_code=500)
    except Exception:
        logger.error(f"Unexpected failure importing project {project.slug}", exc_info=True)
        return PlainTextResponse(IMPORT_FAILED_MESSAGE, status_code=500)

    return PlainTextResponse(SUCCESS_TEMPLATE.format(total=result.total_issues_imported))
