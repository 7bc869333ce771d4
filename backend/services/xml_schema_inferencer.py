"""
XML Schema Inferencer - builds form field definitions from a sample CLM payload.

Admins paste an example ``Params`` document (for instance the
``<TemplateFieldData>`` block a CLM workflow expects). Every simple element
``<Tag>value</Tag>`` becomes one FieldSpec:

- name: the tag itself (must be a plain word, no namespaces)
- label: human readable version of the tag ("Agent_Name" -> "Agent Name")
- type: guessed from the sample value (yes/no, email, digits, phone, long text)
- required: always True, the sample carries no optionality information

Elements that wrap other elements are not fields; only their leaf children are
considered. Multi-level structure is therefore flattened, which is a known
limitation of dynamic mode.
"""
import logging
import re
import xml.etree.ElementTree as ET
from typing import Iterator, List, Optional, Tuple
from xml.sax.saxutils import unescape

from models import FieldSpec, FieldType, WorkflowConfiguration
from services.clm_errors import SampleParseError

logger = logging.getLogger(__name__)

# Wrapper tags that never become fields
WRAPPER_TAGS = {"TemplateFieldData", "params", "root"}

YES_NO_OPTIONS = ["Yes", "No"]
TEXTAREA_THRESHOLD = 50

_TAG_NAME = re.compile(r"^\w+$", re.ASCII)
_DIGITS = re.compile(r"^\d+$", re.ASCII)
_PHONE = re.compile(r"^\d{3}[-.\s]?\d{3}[-.\s]?\d{4}$", re.ASCII)
_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_SIMPLE_ELEMENT = re.compile(r"<(\w+)>([^<]*)</\1>", re.ASCII)
_UPPERCASE_INSIDE = re.compile(r"(?<=\S)(?=[A-Z])")
_WORD_START = re.compile(r"\b\w")
_QUOTE_ENTITIES = {"&quot;": '"', "&apos;": "'"}

# Synthetic element used to parse fragments with several top-level elements
_FRAGMENT_WRAPPER = "ClmSampleFragment"


def _strip_prolog(sample: str) -> str:
    return _XML_DECLARATION.sub("", sample.lstrip("\ufeff"), count=1)


def _parse_sample(sample: Optional[str]) -> Optional[ET.Element]:
    """Parse the sample inside a synthetic wrapper. None when there is no markup at all."""
    if not sample or "<" not in sample:
        return None
    body = _strip_prolog(sample)
    try:
        return ET.fromstring(f"<{_FRAGMENT_WRAPPER}>{body}</{_FRAGMENT_WRAPPER}>")
    except ET.ParseError as e:
        raise SampleParseError(f"Sample XML is not well-formed: {e}") from e


def humanize_tag(tag: str) -> str:
    """Agent_Name -> Agent Name, contractRouting -> Contract Routing, VATNumber -> V A T Number."""
    label = tag.replace("_", " ")
    label = _UPPERCASE_INSIDE.sub(" ", label)
    label = " ".join(label.split())
    return _WORD_START.sub(lambda m: m.group(0).upper(), label)


def infer_field_type(sample_value: str) -> Tuple[FieldType, Optional[List[str]]]:
    """Guess a field type from its sample value. First match wins."""
    if sample_value.lower() in ("yes", "no"):
        return FieldType.SELECT, list(YES_NO_OPTIONS)
    if "@" in sample_value:
        return FieldType.EMAIL, None
    if _DIGITS.match(sample_value):
        return FieldType.NUMBER, None
    if _PHONE.match(sample_value):
        return FieldType.TEL, None
    if len(sample_value) > TEXTAREA_THRESHOLD:
        return FieldType.TEXTAREA, None
    return FieldType.TEXT, None


def _parsed_leaves(wrapper: ET.Element) -> Iterator[Tuple[str, str]]:
    for element in wrapper.iter():
        if element is wrapper or len(element):
            continue
        if not isinstance(element.tag, str):
            continue
        if element.attrib:
            logger.debug(f"Skipping element with attributes: {element.tag}")
            continue
        yield element.tag, element.text or ""


def _scanned_leaves(sample: str) -> Iterator[Tuple[str, str]]:
    """Simple ``<tag>value</tag>`` pairs from markup the XML parser rejects."""
    for match in _SIMPLE_ELEMENT.finditer(sample):
        yield match.group(1), unescape(match.group(2), _QUOTE_ENTITIES)


def infer(sample: Optional[str]) -> List[FieldSpec]:
    """
    Infer the field schema of a sample XML document.

    Returns an empty list when the sample has no usable elements; callers treat
    that as "dynamic mode disabled". Samples the XML parser rejects (a bare
    ``&``, unbalanced tags) are scanned for simple leaf elements instead.
    """
    try:
        wrapper = _parse_sample(sample)
    except SampleParseError as e:
        logger.warning(f"{e}; scanning for simple elements instead")
        leaves = _scanned_leaves(_strip_prolog(sample))
    else:
        if wrapper is None:
            return []
        leaves = _parsed_leaves(wrapper)

    fields: List[FieldSpec] = []
    seen = set()

    for tag, sample_value in leaves:
        if not _TAG_NAME.match(tag) or tag in WRAPPER_TAGS:
            continue
        if tag in seen:
            logger.debug(f"Skipping repeated element: {tag}")
            continue

        field_type, options = infer_field_type(sample_value)
        fields.append(FieldSpec(
            name=tag,
            label=humanize_tag(tag),
            type=field_type,
            options=options,
            sample_value=sample_value,
            required=True,
        ))
        seen.add(tag)

    logger.info(f"Inferred {len(fields)} fields from sample XML")
    return fields


def extract_root_element(sample: Optional[str]) -> Optional[str]:
    """
    Tag of the first top-level element of the sample, when that element wraps
    other elements. Flat fragments (``<a>1</a><b>2</b>``) have no root.
    """
    try:
        wrapper = _parse_sample(sample)
    except SampleParseError as e:
        logger.warning(f"Cannot read root element from sample: {e}")
        return None
    if wrapper is None or not len(wrapper):
        return None
    first = wrapper[0]
    if not isinstance(first.tag, str) or not _TAG_NAME.match(first.tag) or not len(first):
        return None
    return first.tag


def build_configuration(workflow_name: str, example_params: str) -> WorkflowConfiguration:
    """Build a complete dynamic workflow configuration from a sample document."""
    return WorkflowConfiguration(
        workflow_name=workflow_name.strip(),
        fields=infer(example_params),
        root_element=extract_root_element(example_params),
        example_params=example_params,
    )
