"""Reading and validating custom field definitions from CSV."""
import csv
import io
import logging
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from sffield.errors import (
    InvalidFieldDefinitionError,
    InvalidFieldNameError,
    MalformedInputError,
)

logger = logging.getLogger(__name__)

CUSTOM_SUFFIX = "__c"

FIELD_COLUMNS = (
    "fullName", "label", "type", "length", "precision", "scale", "description",
    "formula", "picklistValues", "defaultValue", "required", "externalId",
    "unique", "caseSensitive", "inlineHelpText", "visibleLines",
)

SUPPORTED_FIELD_TYPES = {
    "Text", "Currency", "Checkbox", "Picklist", "Number", "Percent", "Email",
    "Phone", "URL", "TextArea", "LongTextArea", "Html",
}

# legacy spelling -> Metadata API type
TYPE_ALIASES = {"Boolean": "Checkbox"}


class NormalizedField(BaseModel):
    """One validated CSV row. Absent optional columns are ``None``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    full_name: str
    label: str
    type: str
    length: Optional[str] = None
    precision: Optional[str] = None
    scale: Optional[str] = None
    description: Optional[str] = None
    formula: Optional[str] = None
    picklist_values: Optional[str] = None
    default_value: Optional[str] = None
    required: Optional[bool] = None
    external_id: Optional[bool] = None
    unique: Optional[bool] = None
    case_sensitive: Optional[bool] = None
    inline_help_text: Optional[str] = None
    visible_lines: Optional[str] = None


# =============================================================================
# PARSING
# =============================================================================

def parse_field_records(text: str, source: str = "<string>") -> List[Dict[str, str]]:
    """Split CSV text into one header-keyed dict per data row.

    Blank lines are skipped. A row shorter than the header simply lacks the
    trailing columns; a row longer than the header is rejected.
    """
    reader = csv.reader(io.StringIO(text), strict=True, skipinitialspace=False)
    try:
        rows = [row for row in reader if any(cell.strip() for cell in row)]
    except csv.Error as e:
        raise MalformedInputError(
            f"Error reading field definitions: {e}", source=source
        ) from e

    if not rows:
        return []

    headers = [h.strip().lstrip("\ufeff") for h in rows[0]]
    unknown = [h for h in headers if h and h not in FIELD_COLUMNS]
    if unknown:
        logger.warning("Ignoring unknown columns in %s: %s", source, ", ".join(unknown))

    records: List[Dict[str, str]] = []
    for line_no, row in enumerate(rows[1:], start=1):
        if len(row) > len(headers):
            raise MalformedInputError(
                f"Error reading field definitions: row {line_no} has {len(row)} "
                f"columns but the header defines {len(headers)}",
                source=source,
            )
        records.append({headers[i]: cell.strip() for i, cell in enumerate(row)})
    return records


def read_field_definitions(path: str) -> List[Dict[str, str]]:
    """Read a CSV file from disk and return its raw records."""
    try:
        with open(path, "r", encoding="utf-8-sig", newline="") as f:
            content = f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedInputError(f"Error reading field definitions: {e}", source=path) from e
    return parse_field_records(content, source=path)


# =============================================================================
# NORMALIZATION
# =============================================================================

def _optional(record: Dict[str, str], column: str) -> Optional[str]:
    value = record.get(column)
    if value is None:
        return None
    value = value.strip()
    return value or None


def _optional_flag(record: Dict[str, str], column: str) -> Optional[bool]:
    value = _optional(record, column)
    if value is None:
        return None
    return value.lower() == "true"


def normalize_field_record(record: Dict[str, str], row: int = None) -> NormalizedField:
    full_name = _optional(record, "fullName")
    label = _optional(record, "label")
    field_type = _optional(record, "type")

    if not full_name or not label or not field_type:
        raise InvalidFieldDefinitionError(
            "Invalid field definition: fullName, label, and type are required for all fields",
            row=row,
        )
    if not full_name.endswith(CUSTOM_SUFFIX):
        raise InvalidFieldNameError(full_name)

    if field_type in TYPE_ALIASES:
        normalized_type = TYPE_ALIASES[field_type]
        logger.info(
            "Normalized field type: %s from %s to %s", full_name, field_type, normalized_type
        )
        field_type = normalized_type
    elif field_type not in SUPPORTED_FIELD_TYPES:
        logger.warning("Field %s has unrecognized type %s; passing it through", full_name, field_type)

    return NormalizedField(
        full_name=full_name,
        label=label,
        type=field_type,
        length=_optional(record, "length"),
        precision=_optional(record, "precision"),
        scale=_optional(record, "scale"),
        description=_optional(record, "description"),
        formula=_optional(record, "formula"),
        picklist_values=_optional(record, "picklistValues"),
        default_value=_optional(record, "defaultValue"),
        required=_optional_flag(record, "required"),
        external_id=_optional_flag(record, "externalId"),
        unique=_optional_flag(record, "unique"),
        case_sensitive=_optional_flag(record, "caseSensitive"),
        inline_help_text=_optional(record, "inlineHelpText"),
        visible_lines=_optional(record, "visibleLines"),
    )


def normalize_field_records(records: List[Dict[str, str]]) -> List[NormalizedField]:
    """Validate every record in order; the first bad row aborts the batch."""
    return [
        normalize_field_record(record, row=index)
        for index, record in enumerate(records, start=1)
    ]
