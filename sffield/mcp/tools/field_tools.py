import json
import logging

from sffield.errors import FieldCreationError, RemoteDeploymentError
from sffield.mcp.server import register_tool
from sffield.services.field_creator import create_fields
from sffield.services.field_definitions import normalize_field_records, read_field_definitions
from sffield.services.metadata_builder import build_field_descriptor, render_field_xml
from sffield.services.salesforce import get_salesforce_connection

logger = logging.getLogger(__name__)


def _error_payload(error: FieldCreationError) -> dict:
    payload = {"success": False, "error": error.message, "error_type": type(error).__name__}
    if isinstance(error, RemoteDeploymentError):
        payload["failed_fields"] = error.failures
    return payload


@register_tool
def create_custom_fields_from_csv(
    object_name: str,
    source_file: str,
    target_org: str = "",
    skip_existing: bool = False,
) -> str:
    """Create the custom fields described in a CSV file on a Salesforce object.

    Args:
        object_name: API name of the object that receives the fields (e.g. Account)
        source_file: Path to a CSV with fullName,label,type,... columns
        target_org: Username of the target org (defaults to SF_USERNAME)
        skip_existing: Treat "already exists" failures as success

    Returns:
        JSON string with success, path (staging directory) and deployedFields.
    """
    try:
        sf = get_salesforce_connection(target_org or None)
        result = create_fields(object_name, source_file, sf, skip_existing=skip_existing)
        return json.dumps({
            "success": True,
            "path": result.path,
            "deployedFields": result.deployed_fields,
        }, indent=2)
    except FieldCreationError as e:
        logger.error("create_custom_fields_from_csv: %s", e.message)
        return json.dumps(_error_payload(e), indent=2)


@register_tool
def preview_custom_field_metadata(source_file: str) -> str:
    """Render the CustomField XML a CSV would produce, without touching any org.

    Args:
        source_file: Path to a CSV with fullName,label,type,... columns

    Returns:
        JSON string mapping each field name to its XML document; fields that
        could not be rendered are listed under "errors".
    """
    try:
        fields = normalize_field_records(read_field_definitions(source_file))
    except FieldCreationError as e:
        logger.error("preview_custom_field_metadata: %s", e.message)
        return json.dumps(_error_payload(e), indent=2)

    documents = {}
    errors = {}
    for field in fields:
        try:
            documents[field.full_name] = render_field_xml(build_field_descriptor(field))
        except Exception as e:
            logger.warning("Error rendering metadata for field %s: %s", field.full_name, e)
            errors[field.full_name] = str(e)

    payload = {"success": not errors, "fields": documents}
    if errors:
        payload["errors"] = errors
    return json.dumps(payload, indent=2)
