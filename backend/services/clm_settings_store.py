"""
Persisted CLM settings: the dynamic workflow configuration and the opaque API
token. Both are stored as whole documents in the ``clm_settings`` collection
and are only ever replaced, never patched.
"""
import logging
from typing import Optional

from database import database
from models import WorkflowConfiguration, utc_now
from services.clm_errors import FormValidationError

logger = logging.getLogger(__name__)

COLLECTION = "clm_settings"
WORKFLOW_CONFIGURATION_KEY = "workflow_configuration"
API_TOKEN_KEY = "api_token"


async def get_workflow_configuration() -> Optional[WorkflowConfiguration]:
    db = database.get_db()
    doc = await db[COLLECTION].find_one({"key": WORKFLOW_CONFIGURATION_KEY}, {"_id": 0})
    if not doc or not doc.get("value"):
        return None
    return WorkflowConfiguration(**doc["value"])


async def save_workflow_configuration(configuration: WorkflowConfiguration) -> WorkflowConfiguration:
    """Replace the stored configuration as a whole."""
    db = database.get_db()
    stored = configuration.model_copy(update={"updated_at": utc_now()})
    await db[COLLECTION].replace_one(
        {"key": WORKFLOW_CONFIGURATION_KEY},
        {"key": WORKFLOW_CONFIGURATION_KEY, "value": stored.model_dump(mode="json")},
        upsert=True,
    )
    logger.info(
        f"Workflow configuration saved: {stored.workflow_name} ({len(stored.fields)} fields)"
    )
    return stored


async def clear_workflow_configuration() -> bool:
    db = database.get_db()
    result = await db[COLLECTION].delete_one({"key": WORKFLOW_CONFIGURATION_KEY})
    if result.deleted_count:
        logger.info("Workflow configuration cleared")
    return result.deleted_count > 0


async def get_stored_token() -> Optional[str]:
    db = database.get_db()
    doc = await db[COLLECTION].find_one({"key": API_TOKEN_KEY}, {"_id": 0})
    if not doc:
        return None
    return doc.get("value") or None


async def save_token(token: str) -> None:
    token = (token or "").strip()
    if not token:
        raise FormValidationError(
            "Please enter a token",
            errors=[{"field_key": "token", "message": "Please enter a token"}],
        )
    db = database.get_db()
    await db[COLLECTION].replace_one(
        {"key": API_TOKEN_KEY},
        {"key": API_TOKEN_KEY, "value": token, "updated_at": utc_now()},
        upsert=True,
    )
    logger.info(f"CLM API token saved (length {len(token)})")


async def clear_token() -> bool:
    db = database.get_db()
    result = await db[COLLECTION].delete_one({"key": API_TOKEN_KEY})
    logger.info("CLM API token cleared")
    return result.deleted_count > 0
