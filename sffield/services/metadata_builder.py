import logging
from typing import List, Optional, Union

from lxml import etree
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from sffield.config import settings
from sffield.services.field_definitions import NormalizedField

logger = logging.getLogger(__name__)

PNS = "http://soap.sforce.com/2006/04/metadata"

# Order in which CustomField children are emitted.
FIELD_ELEMENT_ORDER = (
    "full_name", "label", "type", "length", "precision", "scale", "description",
    "formula", "default_value", "required", "external_id", "unique",
    "case_sensitive", "inline_help_text", "visible_lines",
)

TEXT_LENGTH_DEFAULTS = {"Text": "255", "Phone": "100", "URL": "100"}
NUMERIC_TYPES = {"Number", "Currency", "Percent"}
LONG_TEXT_TYPES = {"LongTextArea", "Html"}


class PicklistValue(BaseModel):
    model_config = ConfigDict(frozen=True)

    full_name: str
    label: str
    is_default: bool = False


class FieldDescriptor(BaseModel):
    """A CustomField with all type defaults applied, ready to render or submit."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str
    label: str
    type: str
    length: Optional[str] = None
    precision: Optional[str] = None
    scale: Optional[str] = None
    description: Optional[str] = None
    formula: Optional[str] = None
    default_value: Optional[Union[bool, str]] = None
    required: Optional[bool] = None
    external_id: Optional[bool] = None
    unique: Optional[bool] = None
    case_sensitive: Optional[bool] = None
    inline_help_text: Optional[str] = None
    visible_lines: Optional[str] = None
    value_set: Optional[List[PicklistValue]] = Field(default=None)


# =============================================================================
# DESCRIPTOR CONSTRUCTION
# =============================================================================

def _picklist_values(literal: str, default_value: Optional[str]) -> List[PicklistValue]:
    values: List[PicklistValue] = []
    seen = set()
    for raw in literal.split(","):
        value = raw.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        values.append(PicklistValue(full_name=value, label=value, is_default=value == default_value))
    return values


def build_field_descriptor(field: NormalizedField) -> FieldDescriptor:
    """Copy the present attributes of ``field`` and inject per-type defaults."""
    attrs = field.model_dump(exclude={"picklist_values"}, exclude_none=True)
    descriptor = FieldDescriptor(**attrs)
    field_type = descriptor.type

    if field_type == "Picklist":
        if field.picklist_values:
            descriptor.value_set = _picklist_values(field.picklist_values, field.default_value)
            # value set carries the default
            descriptor.default_value = None
    elif field_type in TEXT_LENGTH_DEFAULTS:
        if not descriptor.length:
            descriptor.length = TEXT_LENGTH_DEFAULTS[field_type]
    elif field_type == "Email":
        descriptor.length = None
    elif field_type in NUMERIC_TYPES:
        if not descriptor.precision:
            descriptor.precision = "18"
        if not descriptor.scale:
            descriptor.scale = "2"
    elif field_type == "Checkbox":
        if descriptor.default_value is None:
            descriptor.default_value = False
    elif field_type == "TextArea":
        if not descriptor.length:
            descriptor.length = "1000"
    elif field_type in LONG_TEXT_TYPES:
        if not descriptor.length:
            descriptor.length = "32768"
        if not descriptor.visible_lines:
            descriptor.visible_lines = "10"

    return descriptor


# =============================================================================
# XML RENDERING
# =============================================================================

def _xml_text(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def append_field_elements(parent, descriptor: FieldDescriptor, full_name: str = None) -> None:
    """Append the CustomField children for ``descriptor`` to ``parent``.

    ``full_name`` overrides the descriptor's own name, e.g. with the
    ``Object.Field`` form the Metadata API expects on submission.
    """
    for attr in FIELD_ELEMENT_ORDER:
        value = getattr(descriptor, attr)
        if attr == "full_name" and full_name:
            value = full_name
        if value is None:
            continue
        etree.SubElement(parent, etree.QName(PNS, to_camel(attr))).text = _xml_text(value)

    if descriptor.value_set is not None:
        value_set = etree.SubElement(parent, etree.QName(PNS, "valueSet"))
        value_set_def = etree.SubElement(value_set, etree.QName(PNS, "valueSetDefinition"))
        etree.SubElement(value_set_def, etree.QName(PNS, "sorted")).text = "false"
        for pv in descriptor.value_set:
            value = etree.SubElement(value_set_def, etree.QName(PNS, "value"))
            etree.SubElement(value, etree.QName(PNS, "fullName")).text = pv.full_name
            etree.SubElement(value, etree.QName(PNS, "default")).text = _xml_text(pv.is_default)
            etree.SubElement(value, etree.QName(PNS, "label")).text = pv.label


def _pretty_xml(node) -> str:
    """Return pretty-printed XML string with declaration."""
    return etree.tostring(
        node, encoding="UTF-8", xml_declaration=True, pretty_print=True
    ).decode("utf-8")


def render_field_xml(descriptor: FieldDescriptor) -> str:
    """Generate the <CustomField> document for a single field."""
    root = etree.Element(etree.QName(PNS, "CustomField"), nsmap={None: PNS})
    append_field_elements(root, descriptor)
    return _pretty_xml(root)


def _generate_package_xml(members: List[str], metadata_type: str, api_version: str) -> str:
    """Generate a package.xml with one or more members of a single metadata type."""
    root = etree.Element(etree.QName(PNS, "Package"), nsmap={None: PNS})

    types_tag = etree.SubElement(root, etree.QName(PNS, "types"))
    for m in members:
        etree.SubElement(types_tag, etree.QName(PNS, "members")).text = m
    etree.SubElement(types_tag, etree.QName(PNS, "name")).text = metadata_type

    etree.SubElement(root, etree.QName(PNS, "version")).text = api_version
    return _pretty_xml(root)


def build_package_xml(object_name: str, field_names: List[str], api_version: str = None) -> str:
    """Manifest listing ``Object.Field`` for every staged field."""
    members = [f"{object_name}.{name}" for name in field_names]
    logger.info("Adding %d fields to package.xml:", len(members))
    for member in members:
        logger.info("- %s", member)
    return _generate_package_xml(members, "CustomField", api_version or settings.api_version_number)


# =============================================================================
# STAGING
# =============================================================================

def build_field_metadata(fields: List[NormalizedField], staging) -> List[FieldDescriptor]:
    """Build and stage one descriptor per field.

    A field that fails to build is logged and left out; the rest go on.
    """
    descriptors: List[FieldDescriptor] = []
    for field in fields:
        try:
            logger.info("Generating XML for field: %s (%s)", field.full_name, field.type)
            descriptor = build_field_descriptor(field)
            xml = render_field_xml(descriptor)
            logger.debug("XML preview: %s", xml[:200].replace("\n", " ") + ("..." if len(xml) > 200 else ""))
            path = staging.write_field(descriptor.full_name, xml)
            descriptors.append(descriptor)
            logger.info("Created field metadata: %s", path.name)
        except Exception as e:
            logger.warning("Error creating metadata for field %s: %s", field.full_name, e, exc_info=True)
    return descriptors
