from collections.abc import Sequence
import enum
import logging
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from sffield.errors import FieldCreationError, RemoteDeploymentError, TransportError
from sffield.services.metadata_builder import FieldDescriptor

logger = logging.getLogger(__name__)

ALREADY_EXISTS_MARKERS = ("already a field named", "already exists")


class OutcomeStatus(str, enum.Enum):
    CREATED = "created"
    SKIPPED_EXISTING = "skipped_existing"
    FAILED = "failed"


class DeploymentOutcome(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    status: OutcomeStatus
    message: Optional[str] = None


class DeploymentReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    outcomes: Tuple[DeploymentOutcome, ...] = ()

    def _names(self, status: OutcomeStatus) -> List[str]:
        return [o.name for o in self.outcomes if o.status == status]

    @property
    def created(self) -> List[str]:
        return self._names(OutcomeStatus.CREATED)

    @property
    def skipped(self) -> List[str]:
        return self._names(OutcomeStatus.SKIPPED_EXISTING)

    @property
    def failed(self) -> List[DeploymentOutcome]:
        return [o for o in self.outcomes if o.status == OutcomeStatus.FAILED]

    @property
    def deployed_fields(self) -> List[str]:
        return [o.name for o in self.outcomes if o.status != OutcomeStatus.FAILED]


def _get(result: Any, key: str, default=None):
    if isinstance(result, dict):
        return result.get(key, default)
    return getattr(result, key, default)


def as_result_list(response: Any) -> List[Any]:
    """The create call answers with one result or a list of them; always hand back a list."""
    if response is None:
        return []
    if isinstance(response, (list, tuple)):
        return list(response)
    return [response]


def error_message(result: Any) -> str:
    errors = _get(result, "errors")
    if not errors:
        return "Unknown error"
    if isinstance(errors, (str, dict)) or not isinstance(errors, Sequence):
        errors = [errors]
    messages = []
    for err in errors:
        if isinstance(err, str):
            messages.append(err)
        else:
            messages.append(str(_get(err, "message") or err))
    return ", ".join(messages)


def _is_success(result: Any) -> bool:
    success = _get(result, "success", False)
    if isinstance(success, str):
        return success.lower() == "true"
    return bool(success)


def classify_result(name: str, result: Any, skip_existing: bool) -> DeploymentOutcome:
    if _is_success(result):
        return DeploymentOutcome(name=name, status=OutcomeStatus.CREATED)

    message = error_message(result)
    already_exists = any(marker in message for marker in ALREADY_EXISTS_MARKERS)
    if already_exists and skip_existing:
        return DeploymentOutcome(name=name, status=OutcomeStatus.SKIPPED_EXISTING, message=message)
    return DeploymentOutcome(name=name, status=OutcomeStatus.FAILED, message=message)


def classify_results(
    object_name: str,
    descriptors: List[FieldDescriptor],
    response: Any,
    skip_existing: bool = False,
) -> DeploymentReport:
    """Pair results with descriptors by position and classify each one."""
    results = as_result_list(response)
    if len(results) > len(descriptors):
        logger.warning(
            "Metadata API returned %d results for %d fields; ignoring the extras",
            len(results), len(descriptors),
        )

    outcomes = []
    for index, descriptor in enumerate(descriptors):
        name = descriptor.full_name
        if index >= len(results):
            outcomes.append(DeploymentOutcome(
                name=name, status=OutcomeStatus.FAILED, message="No result returned for field",
            ))
            continue
        result = results[index]
        reported = _get(result, "fullName")
        if reported and reported not in (name, f"{object_name}.{name}"):
            logger.warning("Result %d is for %s but was matched to %s", index, reported, name)
        outcomes.append(classify_result(name, result, skip_existing))
    return DeploymentReport(outcomes=tuple(outcomes))


def _log_report(report: DeploymentReport, total: int) -> None:
    for outcome in report.outcomes:
        if outcome.status == OutcomeStatus.CREATED:
            logger.info("Successfully created field: %s", outcome.name)
        elif outcome.status == OutcomeStatus.SKIPPED_EXISTING:
            logger.info("Skipping existing field: %s", outcome.name)
        else:
            logger.warning("Failed to create field: %s - %s", outcome.name, outcome.message)

    logger.info("=== Field Creation Results ===")
    logger.info("Total fields: %d", total)
    logger.info("Successfully created: %d", len(report.created))
    logger.info("Skipped (already exist): %d", len(report.skipped))
    logger.info("Failed: %d", len(report.failed))


def deploy_fields(
    client,
    object_name: str,
    descriptors: List[FieldDescriptor],
    skip_existing: bool = False,
) -> DeploymentReport:
    """Create ``descriptors`` on ``object_name`` in one call and reconcile the answer.

    Raises:
        RemoteDeploymentError: when at least one field failed and was not an
            "already exists" failure covered by ``skip_existing``.
        TransportError: when the call itself could not be completed.
    """
    logger.info("Creating fields directly in the org using Metadata API...")
    try:
        response = client.create_metadata("CustomField", object_name, descriptors)
    except FieldCreationError:
        raise
    except Exception as e:
        raise TransportError(f"Error deploying metadata: {e}") from e

    report = classify_results(object_name, descriptors, response, skip_existing)
    _log_report(report, len(descriptors))

    if report.failed:
        raise RemoteDeploymentError({o.name: o.message for o in report.failed})

    logger.info("Successfully deployed all fields to the target org")
    return report
