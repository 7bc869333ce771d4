"""
Form-to-XML Encoder - turns submitted form values into the CLM ``Params`` XML.

Three encoding modes exist and exactly one is picked per submission by
``select_mode``:

- Dynamic(configuration): admin-configured fields, one element per field in
  schema order, values passed through verbatim.
- LegacyAgent: the fixed agent/contract ``<TemplateFieldData>`` shape.
- LegacyGeneral: the fixed product-signup ``<params>`` shape.

Every piece of element text is XML-escaped, computed values included. The
encoder does not validate; missing values become empty elements.
"""
import logging
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional, Tuple, Union

from models import WorkflowConfiguration
from services.product_catalog import get_product
from services.xml_schema_inferencer import extract_root_element

logger = logging.getLogger(__name__)

DEFAULT_ROOT_ELEMENT = "TemplateFieldData"
LEGACY_GENERAL_ROOT = "params"
LEGACY_SOURCE = "Vodafone Product Signup Portal"

_XML_ESCAPES = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&apos;"),
)

_TRUTHY = {"true", "on", "YES", "yes"}

# Characters outside the XML 1.0 Char production
_INVALID_XML_CHARS = re.compile(r"[^\x09\x0a\x0d\x20-\ud7ff\ue000-\ufffd\U00010000-\U0010ffff]")


# ============================================================================
# ENCODING MODES
# ============================================================================

@dataclass(frozen=True)
class LegacyGeneral:
    name: str = "legacy_general"


@dataclass(frozen=True)
class LegacyAgent:
    name: str = "legacy_agent"


@dataclass(frozen=True)
class Dynamic:
    configuration: WorkflowConfiguration
    name: str = "dynamic"


EncodingMode = Union[LegacyGeneral, LegacyAgent, Dynamic]


def select_mode(
    values: Mapping[str, Any],
    configuration: Optional[WorkflowConfiguration] = None,
) -> EncodingMode:
    """Dynamic when a usable configuration exists, else agent when agent fields are filled in."""
    if configuration is not None and configuration.is_dynamic:
        return Dynamic(configuration)
    if values.get("agentName") and values.get("agentRole"):
        return LegacyAgent()
    return LegacyGeneral()


# ============================================================================
# PRIMITIVES
# ============================================================================

def escape_xml(value: Any) -> str:
    if value is None:
        return ""
    text = _INVALID_XML_CHARS.sub("", str(value))
    for raw, entity in _XML_ESCAPES:
        text = text.replace(raw, entity)
    return text


def to_yes_no(value: Any) -> str:
    """Map checkbox / radio values onto the CLM "Yes" / "No" keys. Unknown values are "No"."""
    if value is True:
        return "Yes"
    if isinstance(value, str) and value in _TRUTHY:
        return "Yes"
    return "No"


def format_number(value: float) -> str:
    """15.0 -> "15", 35.5 -> "35.5"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def format_timestamp(moment: datetime) -> str:
    """ISO-8601 UTC with millisecond precision, e.g. 2025-01-31T09:30:00.000Z."""
    moment = moment.astimezone(timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _element(tag: str, value: Any) -> str:
    return f"<{tag}>{escape_xml(value)}</{tag}>"


def _wrap(root: str, elements: List[str]) -> str:
    return f"<{root}>{''.join(elements)}</{root}>"


# ============================================================================
# DYNAMIC MODE
# ============================================================================

def resolve_root_element(configuration: WorkflowConfiguration) -> str:
    return (
        configuration.root_element
        or extract_root_element(configuration.example_params)
        or DEFAULT_ROOT_ELEMENT
    )


def encode_dynamic(values: Mapping[str, Any], configuration: WorkflowConfiguration) -> str:
    elements = [_element(field.name, values.get(field.name)) for field in configuration.fields]
    return _wrap(resolve_root_element(configuration), elements)


# ============================================================================
# LEGACY GENERAL (product signup)
# ============================================================================

def _quantity(value: Any) -> int:
    try:
        quantity = int(str(value).strip())
    except (TypeError, ValueError):
        return 1
    return quantity if quantity > 0 else 1


def encode_legacy_general(values: Mapping[str, Any], now: Optional[datetime] = None) -> str:
    elements: List[str] = []

    for key in ("fullName", "companyName", "contactName"):
        if values.get(key):
            elements.append(_element(key, values[key]))

    elements.append(_element("email", values.get("email")))
    elements.append(_element("phone", values.get("phone")))

    for key in ("address", "planType"):
        if values.get(key):
            elements.append(_element(key, values[key]))

    elements.append(_element("productCategory", values.get("productCategory")))

    product = get_product(values.get("selectedProduct"))
    if product:
        quantity = _quantity(values.get("quantity"))
        elements += [
            _element("productId", product.id),
            _element("productName", product.name),
            _element("productDescription", product.description),
            _element("unitPrice", format_number(product.price)),
            _element("quantity", quantity),
            _element("totalMonthlyPrice", format_number(product.price * quantity)),
        ]
    else:
        if values.get("selectedProduct"):
            logger.warning(f"Unknown product id in submission: {values.get('selectedProduct')}")
        elements += [
            _element("productId", ""),
            _element("productName", ""),
            _element("productDescription", ""),
            _element("unitPrice", 0),
            _element("quantity", 1),
            _element("totalMonthlyPrice", 0),
        ]

    if values.get("businessSize"):
        elements.append(_element("businessSize", values["businessSize"]))

    elements.append(_element("requirements", values.get("requirements")))
    elements.append(_element("source", LEGACY_SOURCE))
    elements.append(_element("timestamp", format_timestamp(now or datetime.now(timezone.utc))))

    return _wrap(LEGACY_GENERAL_ROOT, elements)


# ============================================================================
# LEGACY AGENT (contract addendum)
# ============================================================================

# (element, form key, is_yes_no)
AGENT_ELEMENTS: List[Tuple[str, str, bool]] = [
    ("Addendum_Number", "addendumNo", False),
    ("Serie_Number_Contract", "serieNumberContract", False),
    ("Vodafone_Registration_Data", "vodafoneRegistrationData", False),
    ("Agent_Name", "agentName", False),
    ("Agent_Role", "agentRole", False),
    ("Agent_Telephone_Number", "agentTelephone", False),
    ("Client_Registration_Data", "clientRegistrationData", False),
    ("Sales_Segment", "salesSegment", False),
    ("Invoice_should_be_issued_on_the_1st_of_each_month", "invoiceFirstMonth", True),
    ("Electronic_invoice", "electronicInvoice", True),
    ("SMS_or_RCS_or_USSD_Notification", "smsNotification", True),
    ("Emails", "emailNotification", True),
    ("Automatic_Phone_Calls", "automaticPhoneCalls", True),
    ("Contract_Duration", "contractDuration", False),
    ("Contract_Routing", "contractRouting", False),
    ("Chosen_Service", "chosenService", False),
]


def encode_legacy_agent(values: Mapping[str, Any]) -> str:
    elements = []
    for tag, key, is_yes_no in AGENT_ELEMENTS:
        value = to_yes_no(values.get(key)) if is_yes_no else values.get(key)
        elements.append(_element(tag, value))
    return _wrap(DEFAULT_ROOT_ELEMENT, elements)


# ============================================================================
# ENTRY POINT
# ============================================================================

def encode(
    values: Mapping[str, Any],
    mode: EncodingMode,
    now: Optional[datetime] = None,
) -> str:
    """Encode submitted values as CLM workflow ``Params`` XML for the given mode."""
    if isinstance(mode, Dynamic):
        return encode_dynamic(values, mode.configuration)
    if isinstance(mode, LegacyAgent):
        return encode_legacy_agent(values)
    if isinstance(mode, LegacyGeneral):
        return encode_legacy_general(values, now=now)
    raise TypeError(f"Unsupported encoding mode: {mode!r}")
