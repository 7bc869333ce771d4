"""
Relay client - sends workflow payloads to the relay, which attaches the bearer
token and forwards them to the CLM ``/workflows`` endpoint.

Response mapping is shared with the orchestrator:
- 2xx: JSON body returned as-is
- non-2xx: UpstreamError with status and body text verbatim
- network failure / timeout: TransportError
"""
import json
import logging
from typing import Any, Dict, Optional

import httpx

from models import SubmissionPayload
from services.clm_errors import TransportError, UpstreamError

logger = logging.getLogger(__name__)

WORKFLOWS_PATH = "/api/docusign/workflows"
ERROR_MESSAGE_KEYS = ("message", "Message", "error", "errorMessage")


def parse_error_detail(body_text: str) -> Optional[str]:
    """Pull a readable message out of a JSON error body, if there is one."""
    try:
        data = json.loads(body_text)
    except (TypeError, ValueError):
        return None
    if not isinstance(data, dict):
        return None
    for key in ERROR_MESSAGE_KEYS:
        value = data.get(key)
        if value and isinstance(value, str):
            return value
    return None


def build_upstream_error(status_code: int, body_text: str) -> UpstreamError:
    if status_code == 401:
        message = f"Authentication failed (401). Please check your API token. {body_text}".rstrip()
    else:
        detail = parse_error_detail(body_text) or body_text or "No error details available"
        message = f"HTTP {status_code}: {detail}"
    return UpstreamError(message, status_code=status_code, body=body_text)


def extract_workflow_id(data: Any) -> Optional[str]:
    """Workflow id from a CLM response: Id, id, workflowId, then the last segment of Href."""
    if not isinstance(data, dict):
        return None
    for key in ("Id", "id", "workflowId"):
        if data.get(key):
            return str(data[key])
    href = data.get("Href")
    if href:
        segment = str(href).rstrip("/").split("/")[-1]
        return segment or None
    return None


class ClmRelayClient:
    """HTTP client for the relay's workflow endpoint."""

    def __init__(
        self,
        base_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    async def create_workflow(
        self,
        token: str,
        account_id: Optional[str],
        payload: SubmissionPayload,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{WORKFLOWS_PATH}"
        body = {"token": token, "accountId": account_id, "payload": payload.to_clm()}
        logger.info(f"Relay POST {url} workflow={payload.name} token_length={len(token)}")

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=body)
        except httpx.TimeoutException as e:
            logger.error(f"Relay request timed out: {e}")
            raise TransportError("Request to the CLM relay timed out") from e
        except httpx.HTTPError as e:
            logger.error(f"Relay request failed: {e}")
            raise TransportError(f"Network error: could not reach the CLM relay ({e})") from e

        if not response.is_success:
            logger.error(f"Relay returned {response.status_code}: {response.text[:500]}")
            raise build_upstream_error(response.status_code, response.text)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError:
            logger.warning("Relay returned a non-JSON success body")
            return {}
