"""
Submission Log - ordered record of workflows launched from the signup form.

Records are appended after a successful CLM submission and afterwards only
touched by status updates. Nothing is ever deleted.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

from database import database
from models import SubmissionRecord, SubmissionStatus, utc_now

logger = logging.getLogger(__name__)

COLLECTION = "workflow_submissions"


def build_submission_metadata(values: Mapping[str, Any]) -> Dict[str, str]:
    """Summary fields kept alongside the workflow id for the tracking view."""
    client_data = str(values.get("clientRegistrationData") or "")
    return {
        "contractRouting": str(values.get("contractRouting") or "unknown"),
        "agentName": str(values.get("agentName") or "Unknown"),
        "clientName": client_data.split("\n")[0] if client_data else "Unknown Client",
        "salesSegment": str(values.get("salesSegment") or "Unknown"),
    }


class SubmissionLog:
    """MongoDB-backed submission log."""

    async def record(self, workflow_id: str, values: Mapping[str, Any]) -> SubmissionRecord:
        db = database.get_db()
        record = SubmissionRecord(
            id=workflow_id,
            status=SubmissionStatus.SUBMITTED.value,
            metadata=build_submission_metadata(values),
        )
        await db[COLLECTION].insert_one(record.model_dump())
        logger.info(f"Stored workflow submission: {workflow_id}")
        return record

    async def list_all(self, skip: int = 0, limit: int = 100) -> List[SubmissionRecord]:
        """One page of the log in submission order."""
        db = database.get_db()
        cursor = db[COLLECTION].find({}, {"_id": 0}).sort("submitted_at", 1).skip(skip).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [SubmissionRecord(**doc) for doc in docs]

    async def count(self) -> int:
        db = database.get_db()
        return await db[COLLECTION].count_documents({})

    async def get(self, workflow_id: str) -> Optional[SubmissionRecord]:
        db = database.get_db()
        doc = await db[COLLECTION].find_one({"id": workflow_id}, {"_id": 0})
        return SubmissionRecord(**doc) if doc else None

    async def update_status(self, workflow_id: str, status: str) -> Optional[SubmissionRecord]:
        """Set a new status. Returns None when the workflow id is unknown."""
        db = database.get_db()
        result = await db[COLLECTION].update_one(
            {"id": workflow_id},
            {"$set": {"status": status, "updated_at": utc_now()}},
        )
        if not result.matched_count:
            logger.warning(f"Status update for unknown workflow submission: {workflow_id}")
            return None
        logger.info(f"Workflow submission {workflow_id} status -> {status}")
        return await self.get(workflow_id)


# Singleton instance
submission_log = SubmissionLog()
