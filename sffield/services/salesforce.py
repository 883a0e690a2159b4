"""Salesforce connection management"""
from simple_salesforce import Salesforce
from simple_salesforce.exceptions import SalesforceError
import requests
import threading
import logging

from sffield.config import settings
from sffield.errors import InvalidInvocationError, TransportError

logger = logging.getLogger(__name__)

# Thread-local storage
local = threading.local()


def _connect(target_org: str) -> Salesforce:
    if settings.session_id and settings.instance_url:
        return Salesforce(
            instance_url=settings.instance_url,
            session_id=settings.session_id,
            version=settings.api_version_number,
        )

    username = target_org or settings.username
    if not username or not settings.password:
        raise InvalidInvocationError(
            "No Salesforce credentials configured.\n"
            "Set SF_INSTANCE_URL and SF_SESSION_ID, or SF_PASSWORD and "
            "SF_SECURITY_TOKEN for the target org username."
        )
    return Salesforce(
        username=username,
        password=settings.password,
        security_token=settings.security_token,
        domain=settings.domain,
        version=settings.api_version_number,
    )


def get_salesforce_connection(target_org: str = None):
    """
    Get a Salesforce connection for the target org.

    Args:
        target_org: Username of the org to connect to (falls back to SF_USERNAME)

    Returns:
        Salesforce connection instance
    """
    connections = getattr(local, "sf_connections", None)
    if connections is None:
        connections = local.sf_connections = {}

    key = target_org or settings.username or settings.instance_url
    if key not in connections:
        logger.info("Creating Salesforce connection...")
        try:
            connections[key] = _connect(target_org)
        except (SalesforceError, requests.RequestException) as e:
            raise TransportError(f"Could not connect to {key}: {e}") from e
        logger.info("Connected to %s", connections[key].sf_instance)

    return connections[key]
