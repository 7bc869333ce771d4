"""
Submission Orchestrator - one signup form submission, end to end.

Flow:
1. Configuration check (token, account id, workflow name) - no network before this
2. Encoding mode selected once: Dynamic / LegacyAgent / LegacyGeneral
3. Validation
4. Encoding to XML and payload {Name, Params}
5. Single POST to the relay (no retries)
6. Workflow id extraction and submission log entry

Every ClmIntegrationError is turned into a tagged SubmissionResult here.
"""
import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from config import ClmSettings
from models import SubmissionPayload, SubmissionResult, WorkflowConfiguration
from services.clm_errors import (
    ClmIntegrationError,
    ConfigurationError,
    FormValidationError,
    UpstreamError,
)
from services.clm_relay_client import ClmRelayClient, extract_workflow_id
from services.submission_log import SubmissionLog
from services.submission_validator import describe_failure, validate_submission
from services.xml_encoder import Dynamic, EncodingMode, encode, select_mode

logger = logging.getLogger(__name__)


class SubmissionOrchestrator:

    def __init__(
        self,
        settings: ClmSettings,
        relay: ClmRelayClient,
        configuration: Optional[WorkflowConfiguration] = None,
        submission_log: Optional[SubmissionLog] = None,
    ):
        self.settings = settings
        self.relay = relay
        self.configuration = configuration
        self.submission_log = submission_log

    def workflow_name_for(self, mode: EncodingMode) -> str:
        if isinstance(mode, Dynamic):
            return mode.configuration.workflow_name
        return self.settings.legacy_workflow_name

    def build_payload(
        self,
        values: Mapping[str, Any],
        mode: EncodingMode,
        now: Optional[datetime] = None,
    ) -> SubmissionPayload:
        return SubmissionPayload(
            name=self.workflow_name_for(mode),
            xml_params=encode(values, mode, now=now),
        )

    def _check_configuration(self, token: Optional[str], mode: EncodingMode) -> None:
        if not token or not token.strip():
            raise ConfigurationError("Please configure your API token first")
        if not self.settings.account_id:
            raise ConfigurationError(
                "No Docusign CLM account ID configured. Set CLM_ACCOUNT_ID."
            )
        if not (self.workflow_name_for(mode) or "").strip():
            raise ConfigurationError("No workflow name configured")

    def _validate(self, values: Mapping[str, Any], mode: EncodingMode) -> None:
        result = validate_submission(values, mode)
        if not result["valid"]:
            raise FormValidationError(describe_failure(result), errors=result["errors"])

    async def submit(self, values: Dict[str, Any], token: Optional[str]) -> SubmissionResult:
        """Validate, encode and send one submission. Never raises ClmIntegrationError."""
        mode = select_mode(values, self.configuration)
        logger.info(f"Workflow submission started (mode={mode.name})")

        try:
            self._check_configuration(token, mode)
            self._validate(values, mode)
            payload = self.build_payload(values, mode)
            data = await self.relay.create_workflow(token.strip(), self.settings.account_id, payload)
        except ClmIntegrationError as e:
            logger.warning(f"Workflow submission failed ({e.kind.value}): {e.message}")
            return self._failure(e)

        workflow_id = extract_workflow_id(data)
        logger.info(f"Workflow launched: {workflow_id or '(no id returned)'}")

        if workflow_id and self.submission_log is not None:
            try:
                await self.submission_log.record(workflow_id, values)
            except Exception as e:
                logger.error(f"Failed to store workflow submission {workflow_id}: {e}")

        return SubmissionResult(success=True, workflow_id=workflow_id, data=data)

    @staticmethod
    def _failure(error: ClmIntegrationError) -> SubmissionResult:
        result = SubmissionResult(success=False, error=error.message, error_kind=error.kind)
        if isinstance(error, UpstreamError):
            result.status_code = error.status_code
            result.body = error.body
        if isinstance(error, FormValidationError):
            result.field_errors = error.errors
        return result
