"""
Pre-submission validation. Runs before encoding; the encoder itself never
checks values.
"""
import re
from typing import Any, Dict, List, Mapping

from models import FieldType
from services.xml_encoder import Dynamic, EncodingMode, LegacyAgent

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

LEGACY_GENERAL_REQUIRED = ["email", "phone", "productCategory"]
LEGACY_AGENT_REQUIRED = [
    "agentName",
    "agentRole",
    "agentTelephone",
    "clientRegistrationData",
    "salesSegment",
    "contractDuration",
    "contractRouting",
    "chosenService",
]


def _is_blank(value: Any) -> bool:
    return value is None or str(value).strip() == ""


def _is_valid_email(value: Any) -> bool:
    return bool(EMAIL_PATTERN.match(str(value)))


def _check_quantity(values: Mapping[str, Any], errors: List[Dict[str, str]], missing: List[str]) -> None:
    if _is_blank(values.get("selectedProduct")):
        return
    try:
        quantity = int(str(values.get("quantity")).strip())
    except (TypeError, ValueError):
        quantity = 0
    if quantity < 1:
        missing.append("quantity")
        errors.append({"field_key": "quantity", "message": "Quantity must be at least 1"})


def validate_submission(values: Mapping[str, Any], mode: EncodingMode) -> Dict[str, Any]:
    """
    Validate submitted values for the selected encoding mode.

    Returns:
        {
            "valid": bool,
            "errors": List[{field_key, message}],
            "missing": List[field_key]
        }
    """
    errors: List[Dict[str, str]] = []
    missing: List[str] = []
    email_keys: List[str] = []

    if isinstance(mode, Dynamic):
        for field in mode.configuration.fields:
            if field.required and _is_blank(values.get(field.name)):
                missing.append(field.name)
                errors.append({"field_key": field.name, "message": f"{field.label} is required"})
            elif field.type == FieldType.EMAIL and not _is_blank(values.get(field.name)):
                email_keys.append(field.name)
    elif isinstance(mode, LegacyAgent):
        for key in LEGACY_AGENT_REQUIRED:
            if _is_blank(values.get(key)):
                missing.append(key)
                errors.append({"field_key": key, "message": f"{key} is required"})
        if not _is_blank(values.get("email")):
            email_keys.append("email")
    else:
        for key in LEGACY_GENERAL_REQUIRED:
            if _is_blank(values.get(key)):
                missing.append(key)
                errors.append({"field_key": key, "message": f"{key} is required"})
        if not _is_blank(values.get("email")):
            email_keys.append("email")
        _check_quantity(values, errors, missing)

    for key in email_keys:
        if not _is_valid_email(values.get(key)):
            errors.append({"field_key": key, "message": "Please enter a valid email address"})

    return {
        "valid": len(errors) == 0,
        "errors": errors,
        "missing": missing,
    }


def describe_failure(result: Dict[str, Any]) -> str:
    """Single user-facing message for a failed validation result."""
    if result["missing"]:
        return f"Please fill in all required fields: {', '.join(result['missing'])}"
    return result["errors"][0]["message"] if result["errors"] else "Invalid submission"
