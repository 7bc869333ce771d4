"""
Dynamic Form Renderer - UI field descriptors for a workflow configuration.

The frontend draws the signup form from these descriptors; nothing here
produces markup. Sample values from the inferred schema become the default
value and placeholder of each input.
"""
from typing import Any, Dict, List, Optional

from models import FieldSpec, FieldType, WorkflowConfiguration

SELECT_PLACEHOLDER = "Select..."

# FieldType -> (widget, html input type)
_WIDGETS = {
    FieldType.TEXT: ("input", "text"),
    FieldType.TEXTAREA: ("textarea", None),
    FieldType.SELECT: ("select", None),
    FieldType.EMAIL: ("input", "email"),
    FieldType.NUMBER: ("input", "number"),
    FieldType.TEL: ("input", "tel"),
}


def describe_field(field: FieldSpec, order: int = 0) -> Dict[str, Any]:
    widget, input_type = _WIDGETS.get(field.type, ("input", "text"))
    descriptor: Dict[str, Any] = {
        "field_key": field.name,
        "label": field.label,
        "display_label": f"{field.label}{' *' if field.required else ''}",
        "type": field.type.value,
        "widget": widget,
        "input_type": input_type,
        "required": field.required,
        "default_value": field.sample_value,
        "placeholder": field.sample_value,
        "order": order,
    }
    if field.type == FieldType.SELECT:
        descriptor["options"] = [{"value": "", "label": SELECT_PLACEHOLDER, "selected": False}] + [
            {"value": option, "label": option, "selected": option == field.sample_value}
            for option in (field.options or [])
        ]
    return descriptor


def describe_form(configuration: Optional[WorkflowConfiguration]) -> Dict[str, Any]:
    """Form descriptor for the signup page. Legacy mode when no dynamic configuration exists."""
    if configuration is None or not configuration.is_dynamic:
        return {"mode": "legacy", "workflow_name": None, "fields": []}

    fields: List[Dict[str, Any]] = [
        describe_field(field, order=index + 1)
        for index, field in enumerate(configuration.fields)
    ]
    return {
        "mode": "dynamic",
        "workflow_name": configuration.workflow_name,
        "fields": fields,
    }
