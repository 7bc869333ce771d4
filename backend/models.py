from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List
from datetime import datetime, timezone
from enum import Enum
import re

# ============================================================================
# ENUMS (System Constants)
# ============================================================================

class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    EMAIL = "email"
    NUMBER = "number"
    TEL = "tel"

class SubmissionStatus(str, Enum):
    """Initial status. Later statuses are free-form values reported by CLM."""
    SUBMITTED = "submitted"

class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    TRANSPORT = "transport"
    UPSTREAM = "upstream"


XML_NAME_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)

# ============================================================================
# FORM SCHEMA MODELS
# ============================================================================

class FieldSpec(BaseModel):
    """One form field, inferred from a sample document or declared by an admin."""
    name: str
    label: str
    type: FieldType = FieldType.TEXT
    options: Optional[List[str]] = None  # select only
    sample_value: str = ""
    required: bool = True

    @field_validator("name")
    @classmethod
    def name_must_be_xml_safe(cls, v: str) -> str:
        if not XML_NAME_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid XML element name")
        return v


class WorkflowConfiguration(BaseModel):
    """Admin-managed dynamic workflow. Always replaced as a whole, never patched."""
    workflow_name: str
    fields: List[FieldSpec] = []
    root_element: Optional[str] = None
    example_params: Optional[str] = None
    updated_at: Optional[datetime] = None

    @field_validator("fields")
    @classmethod
    def field_names_unique(cls, v: List[FieldSpec]) -> List[FieldSpec]:
        seen = set()
        for field in v:
            if field.name in seen:
                raise ValueError(f"Duplicate field name: {field.name}")
            seen.add(field.name)
        return v

    @field_validator("root_element")
    @classmethod
    def root_element_xml_safe(cls, v: Optional[str]) -> Optional[str]:
        if v and not XML_NAME_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a valid XML element name")
        return v or None

    @property
    def is_dynamic(self) -> bool:
        return bool(self.workflow_name and self.fields)

# ============================================================================
# SUBMISSION MODELS
# ============================================================================

class SubmissionPayload(BaseModel):
    """Body of the CLM ``POST /workflows`` call."""
    name: str
    xml_params: str

    def to_clm(self) -> Dict[str, str]:
        return {"Name": self.name, "Params": self.xml_params}


class SubmissionRecord(BaseModel):
    id: str
    submitted_at: datetime = Field(default_factory=utc_now)
    status: str = SubmissionStatus.SUBMITTED.value
    metadata: Dict[str, str] = {}
    updated_at: Optional[datetime] = None


class SubmissionResult(BaseModel):
    success: bool
    workflow_id: Optional[str] = None
    error: Optional[str] = None
    error_kind: Optional[ErrorKind] = None
    status_code: Optional[int] = None
    body: Optional[str] = None
    field_errors: List[Dict[str, str]] = []
    data: Optional[Any] = None

# ============================================================================
# REQUEST MODELS
# ============================================================================

class SaveTokenRequest(BaseModel):
    token: str


class SubmitRequest(BaseModel):
    values: Dict[str, Any]


class StatusUpdateRequest(BaseModel):
    status: str


class InferConfigurationRequest(BaseModel):
    workflow_name: str
    example_params: str


class RelayWorkflowRequest(BaseModel):
    token: Optional[str] = None
    accountId: Optional[str] = None
    payload: Dict[str, Any]


class OAuthTokenRequest(BaseModel):
    code: Optional[str] = None
    clientId: Optional[str] = None
    redirectUri: Optional[str] = None
    clientSecret: Optional[str] = None
