"""
Product Signup Routes

Public API behind the signup form:
- product catalog and form descriptor
- opaque CLM token storage
- workflow submission (validate -> encode -> relay -> CLM)
- submission log tracking
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
import logging

from config import ClmSettings, get_settings
from models import (
    ErrorKind,
    SaveTokenRequest,
    StatusUpdateRequest,
    SubmitRequest,
)
from services import clm_settings_store
from services.clm_errors import FormValidationError
from services.clm_relay_client import ClmRelayClient
from services.form_renderer import describe_form
from services.product_catalog import get_catalog
from services.submission_log import submission_log
from services.submission_orchestrator import SubmissionOrchestrator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/signup", tags=["signup"])

# Failure kind -> HTTP status of the submit endpoint
FAILURE_STATUS = {
    ErrorKind.CONFIGURATION: 400,
    ErrorKind.VALIDATION: 422,
    ErrorKind.TRANSPORT: 502,
    ErrorKind.UPSTREAM: 502,
}


def get_relay_client(settings: ClmSettings = Depends(get_settings)) -> ClmRelayClient:
    return ClmRelayClient(settings.relay_base_url, timeout=settings.request_timeout)


@router.get("/products")
async def list_products():
    return {"categories": get_catalog()}


@router.get("/form")
async def get_form():
    """Form descriptor: dynamic fields when an admin configuration exists, legacy otherwise."""
    configuration = await clm_settings_store.get_workflow_configuration()
    return describe_form(configuration)


# ============================================================================
# TOKEN
# ============================================================================

@router.get("/token/status")
async def token_status():
    token = await clm_settings_store.get_stored_token()
    return {"configured": bool(token)}


@router.post("/token")
async def save_token(body: SaveTokenRequest):
    try:
        await clm_settings_store.save_token(body.token)
    except FormValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)
    return {"configured": True, "message": "Token saved successfully!"}


@router.delete("/token")
async def clear_token():
    await clm_settings_store.clear_token()
    return {"configured": False, "message": "Token cleared successfully!"}


# ============================================================================
# SUBMISSION
# ============================================================================

@router.post("/submit")
async def submit(
    body: SubmitRequest,
    settings: ClmSettings = Depends(get_settings),
    relay: ClmRelayClient = Depends(get_relay_client),
):
    token = await clm_settings_store.get_stored_token()
    configuration = await clm_settings_store.get_workflow_configuration()

    orchestrator = SubmissionOrchestrator(
        settings=settings,
        relay=relay,
        configuration=configuration,
        submission_log=submission_log,
    )
    result = await orchestrator.submit(body.values, token)

    if result.success:
        return result.model_dump(mode="json")
    return JSONResponse(
        status_code=FAILURE_STATUS.get(result.error_kind, 500),
        content=result.model_dump(mode="json"),
    )


@router.get("/submissions")
async def list_submissions(
    limit: int = Query(100, ge=1, le=500),
    skip: int = Query(0, ge=0),
):
    records = await submission_log.list_all(skip=skip, limit=limit)
    total = await submission_log.count()
    return {
        "submissions": [r.model_dump(mode="json") for r in records],
        "total": total,
        "skip": skip,
        "limit": limit,
    }


@router.get("/submissions/{workflow_id}")
async def get_submission(workflow_id: str):
    record = await submission_log.get(workflow_id)
    if not record:
        raise HTTPException(status_code=404, detail="Submission not found")
    return record.model_dump(mode="json")


@router.patch("/submissions/{workflow_id}/status")
async def update_submission_status(workflow_id: str, body: StatusUpdateRequest):
    if not body.status.strip():
        raise HTTPException(status_code=400, detail="Status is required")
    record = await submission_log.update_status(workflow_id, body.status.strip())
    if not record:
        raise HTTPException(status_code=404, detail="Submission not found")
    return record.model_dump(mode="json")
