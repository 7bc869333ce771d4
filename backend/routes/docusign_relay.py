"""
Docusign CLM Relay Routes

Server-side pass-through to the CLM (SpringCM) REST API so the browser form
never calls it cross-origin:
- POST /oauth/token                 authorization-code exchange
- POST /workflows                   launch a workflow {Name, Params}
- GET  /workflow/{id}               workflow info
- GET  /current-member, /member/{id}
- GET  /current-user-workitems, /user-workflow-queues, /workflow-queues,
       /queue-workitems/{id}, /document/{id}/attributes

Downstream status codes and bodies are returned unmodified. Only local
failures (missing token/account, network error) produce {error, message}.
Exactly one auth scheme is used: ``Authorization: Bearer <token>``.
"""
import logging
from typing import AsyncIterator, Optional

import httpx
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, Response

from config import ClmSettings, get_settings
from models import OAuthTokenRequest, RelayWorkflowRequest

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/docusign", tags=["docusign-relay"])


async def get_clm_http_client(
    settings: ClmSettings = Depends(get_settings),
) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
        yield client


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "message": message})


def _bearer_headers(token: str) -> dict:
    return {
        "Authorization": f"Bearer {token}",
        "Accept": "application/json",
        "Cache-Control": "no-cache",
    }


def _passthrough(response: httpx.Response) -> Response:
    return Response(
        content=response.content,
        status_code=response.status_code,
        media_type=response.headers.get("content-type", "application/json"),
    )


def resolve_token(request: Request) -> Optional[str]:
    """Token from ``Authorization: Bearer`` or ``?token=``."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        if token:
            return token
    return request.query_params.get("token") or None


def resolve_account_id(request: Request, settings: ClmSettings) -> Optional[str]:
    """Account id from ``X-Account-Id``, ``?accountId=`` or the configured default."""
    return (
        request.headers.get("x-account-id")
        or request.query_params.get("accountId")
        or settings.account_id
    )


async def _relay_get(
    request: Request,
    settings: ClmSettings,
    client: httpx.AsyncClient,
    path: str,
    label: str,
    params: Optional[dict] = None,
) -> Response:
    token = resolve_token(request)
    if not token:
        return _error(401, "No token provided", "Authorization token is required")

    account_id = resolve_account_id(request, settings)
    if not account_id:
        return _error(
            400,
            "No account ID provided",
            "Account ID is required in headers (x-account-id) or query params (accountId)",
        )

    url = f"{settings.account_url(account_id)}{path}"
    logger.info(f"Relaying {label} request for account {account_id}")
    try:
        response = await client.get(url, headers=_bearer_headers(token), params=params)
    except httpx.HTTPError as e:
        logger.error(f"{label} relay error: {e}")
        return _error(502, f"{label} relay error", str(e))

    if not response.is_success:
        logger.error(f"{label} API error: {response.status_code} {response.text[:500]}")
    return _passthrough(response)


# ============================================================================
# ENDPOINTS
# ============================================================================

@router.post("/oauth/token")
async def exchange_oauth_token(
    body: OAuthTokenRequest,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    """Exchange an authorization code for an access token."""
    if not body.code or not body.clientId or not body.redirectUri:
        return _error(
            400,
            "Missing required parameters",
            "code, clientId, and redirectUri are required",
        )

    form = {
        "grant_type": "authorization_code",
        "code": body.code,
        "redirect_uri": body.redirectUri,
        "client_id": body.clientId,
    }
    if body.clientSecret:
        form["client_secret"] = body.clientSecret

    logger.info(f"OAuth token exchange for client {body.clientId}")
    try:
        response = await client.post(settings.oauth_token_url, data=form)
    except httpx.HTTPError as e:
        logger.error(f"OAuth token exchange error: {e}")
        return _error(502, "Token exchange failed", str(e))

    if not response.is_success:
        logger.error(f"Token exchange failed: {response.status_code} {response.text[:500]}")
        return JSONResponse(
            status_code=response.status_code,
            content={
                "error": "Token exchange failed",
                "status": response.status_code,
                "details": response.text,
            },
        )

    logger.info("OAuth token exchange successful")
    return _passthrough(response)


@router.post("/workflows")
async def create_workflow(
    body: RelayWorkflowRequest,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    """Launch a CLM workflow. Body: {token, accountId, payload: {Name, Params}}."""
    account_id = body.accountId or settings.account_id
    if not account_id:
        return _error(
            400,
            "Account ID required",
            "Please provide your Docusign CLM Account ID in the Admin panel",
        )
    if not body.token:
        return _error(401, "No token provided", "Authorization token is required")

    url = f"{settings.account_url(account_id)}/workflows"
    logger.info(f"Relaying workflow launch '{body.payload.get('Name')}' for account {account_id}")
    headers = {**_bearer_headers(body.token), "Content-Type": "application/json", "Accept": "*/*"}
    try:
        response = await client.post(url, headers=headers, json=body.payload)
    except httpx.HTTPError as e:
        logger.error(f"Workflow relay error: {e}")
        return _error(502, "Proxy server error", str(e))

    if not response.is_success:
        logger.error(f"CLM workflow API error: {response.status_code} {response.text[:500]}")
    return _passthrough(response)


@router.get("/workflow/{workflow_id}")
async def get_workflow(
    workflow_id: str,
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(request, settings, client, f"/workflows/{workflow_id}", "Workflow Info")


@router.get("/current-member")
async def get_current_member(
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(request, settings, client, "/members/current", "Current Member")


@router.get("/current-user-workitems")
async def get_current_user_workitems(
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(
        request, settings, client, "/members/current/workitems", "Current User Work Items"
    )


@router.get("/user-workflow-queues")
async def get_user_workflow_queues(
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(
        request, settings, client, "/members/current/workflowqueues", "User Workflow Queues"
    )


@router.get("/workflow-queues")
async def get_workflow_queues(
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(request, settings, client, "/workflowqueues", "Workflow Queues")


@router.get("/member/{member_id}")
async def get_member(
    member_id: str,
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(request, settings, client, f"/members/{member_id}", "Member Details")


@router.get("/document/{document_id}/attributes")
async def get_document_attributes(
    document_id: str,
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(
        request, settings, client, f"/documents/{document_id}", "Document Attributes",
        params={"expand": "AttributeGroups"},
    )


@router.get("/queue-workitems/{queue_id}")
async def get_queue_workitems(
    queue_id: str,
    request: Request,
    settings: ClmSettings = Depends(get_settings),
    client: httpx.AsyncClient = Depends(get_clm_http_client),
):
    return await _relay_get(
        request, settings, client, f"/workflowqueues/{queue_id}/workitems", "Queue Work Items"
    )
