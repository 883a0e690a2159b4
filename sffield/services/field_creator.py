"""CSV in, custom fields out: the full create-field run."""
import logging
import os
from typing import List

from pydantic import BaseModel

from sffield.errors import (
    FieldCreationError,
    InvalidInvocationError,
    NoFieldDefinitionsError,
    NoMetadataGeneratedError,
)
from sffield.services.deployer import deploy_fields
from sffield.services.field_definitions import normalize_field_records, read_field_definitions
from sffield.services.metadata_api import MetadataClient
from sffield.services.metadata_builder import build_field_metadata, build_package_xml
from sffield.services.staging import create_staging_directory

logger = logging.getLogger(__name__)


class FieldCreationResult(BaseModel):
    path: str
    deployed_fields: List[str]


def _org_label(target_org) -> str:
    if isinstance(target_org, str):
        return target_org
    return getattr(target_org, "sf_instance", None) or type(target_org).__name__


def _check_invocation(target_object: str, source_file: str) -> None:
    if not target_object or not target_object.strip():
        raise InvalidInvocationError("Target object name is required")
    if not source_file or not source_file.lower().endswith(".csv"):
        raise InvalidInvocationError("Source file must be a CSV file")
    if not os.path.isfile(source_file):
        raise InvalidInvocationError(f"Source file not found: {source_file}")


def create_fields(
    target_object: str,
    source_file: str,
    target_org,
    skip_existing: bool = False,
    client=None,
    staging_root: str = None,
) -> FieldCreationResult:
    """Create every field defined in ``source_file`` on ``target_object``.

    ``target_org`` is the org handle (a ``simple_salesforce.Salesforce``);
    ``client`` overrides the Metadata API client built from it.
    """
    try:
        logger.info("=== SF Metadata CLI - Create Field ===")
        logger.info("Target Object: %s", target_object)
        logger.info("Source File: %s", source_file)
        logger.info("Target Org: %s", _org_label(target_org))
        logger.info("Skip Existing Fields: %s", skip_existing)

        _check_invocation(target_object, source_file)

        records = read_field_definitions(source_file)
        logger.info("Found %d field definitions", len(records))
        if not records:
            raise NoFieldDefinitionsError()

        fields = normalize_field_records(records)

        staging = create_staging_directory(target_object, root=staging_root)
        logger.info("Created temporary metadata directory: %s", staging)

        descriptors = build_field_metadata(fields, staging)
        logger.info("Generated metadata for %d fields", len(descriptors))
        if not descriptors:
            raise NoMetadataGeneratedError()

        staging.write_manifest(
            build_package_xml(target_object, [d.full_name for d in descriptors])
        )

        if client is None:
            client = MetadataClient(target_org)
        report = deploy_fields(client, target_object, descriptors, skip_existing)
        logger.info("Successfully deployed field metadata to the target org")

        logger.info("=== Deployment Summary ===")
        logger.info("Total fields processed: %d", len(fields))
        logger.info("Fields successfully deployed: %d", len(report.deployed_fields))
        logger.info("Temporary directory: %s", staging)

        return FieldCreationResult(path=str(staging), deployed_fields=report.deployed_fields)
    except FieldCreationError:
        raise
    except Exception as e:
        raise FieldCreationError(f"Error creating fields: {e}") from e
