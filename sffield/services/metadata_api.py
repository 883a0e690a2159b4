"""Thin client for the Metadata API ``createMetadata`` SOAP call."""
import logging
from typing import Any, Dict, List, Optional

import requests
from lxml import etree

from sffield.config import settings
from sffield.errors import TransportError
from sffield.services.metadata_builder import PNS, FieldDescriptor, append_field_elements

logger = logging.getLogger(__name__)

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"


def _build_create_envelope(
    session_id: str, metadata_type: str, object_name: str, descriptors: List[FieldDescriptor]
) -> bytes:
    nsmap = {"soapenv": SOAP_ENV_NS, "met": PNS, "xsi": XSI_NS}
    envelope = etree.Element(etree.QName(SOAP_ENV_NS, "Envelope"), nsmap=nsmap)

    header = etree.SubElement(envelope, etree.QName(SOAP_ENV_NS, "Header"))
    session_header = etree.SubElement(header, etree.QName(PNS, "SessionHeader"))
    etree.SubElement(session_header, etree.QName(PNS, "sessionId")).text = session_id

    body = etree.SubElement(envelope, etree.QName(SOAP_ENV_NS, "Body"))
    create = etree.SubElement(body, etree.QName(PNS, "createMetadata"))
    for descriptor in descriptors:
        component = etree.SubElement(create, etree.QName(PNS, "metadata"))
        component.set(etree.QName(XSI_NS, "type"), f"met:{metadata_type}")
        append_field_elements(component, descriptor, full_name=f"{object_name}.{descriptor.full_name}")

    return etree.tostring(envelope, encoding="UTF-8", xml_declaration=True)


def _child_text(node, name: str) -> Optional[str]:
    found = node.xpath(f"./*[local-name()='{name}']")
    return found[0].text if found and found[0].text is not None else None


def _parse_create_response(content: bytes) -> List[Dict[str, Any]]:
    try:
        root = etree.fromstring(content)
    except etree.XMLSyntaxError as e:
        raise TransportError(f"Unreadable createMetadata response: {e}") from e

    fault = root.xpath("//*[local-name()='Fault']")
    if fault:
        code = _child_text(fault[0], "faultcode")
        message = _child_text(fault[0], "faultstring")
        raise TransportError(f"Metadata API fault {code}: {message}")

    results = []
    for node in root.xpath("//*[local-name()='createMetadataResponse']/*[local-name()='result']"):
        errors = [
            {
                "statusCode": _child_text(err, "statusCode"),
                "message": _child_text(err, "message"),
            }
            for err in node.xpath("./*[local-name()='errors']")
        ]
        results.append({
            "fullName": _child_text(node, "fullName"),
            "success": (_child_text(node, "success") or "").lower() == "true",
            "errors": errors,
        })
    return results


class MetadataClient:
    """Submits CustomField components for one org over the SOAP Metadata endpoint.

    Args:
        sf_connection: ``simple_salesforce.Salesforce`` handle; only its
            session id, instance host and HTTP session are used.
    """

    def __init__(self, sf_connection, api_version: str = None, timeout: int = None):
        self.sf = sf_connection
        self.api_version = api_version or settings.api_version_number
        self.timeout = timeout or settings.request_timeout
        self._http = getattr(sf_connection, "session", None) or requests.Session()

    @property
    def endpoint(self) -> str:
        return f"https://{self.sf.sf_instance}/services/Soap/m/{self.api_version}"

    def create_metadata(
        self, metadata_type: str, object_name: str, descriptors: List[FieldDescriptor]
    ) -> List[Dict[str, Any]]:
        payload = _build_create_envelope(self.sf.session_id, metadata_type, object_name, descriptors)
        headers = {"Content-Type": "text/xml; charset=UTF-8", "SOAPAction": "createMetadata"}

        logger.info("Deploying %d fields to the org...", len(descriptors))
        try:
            resp = self._http.post(self.endpoint, data=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise TransportError(f"Error deploying metadata: {e}") from e

        # faults come back as HTTP 500 with a SOAP body
        if resp.status_code >= 400 and b"Fault" not in (resp.content or b""):
            raise TransportError(
                f"Error deploying metadata: HTTP {resp.status_code} {resp.text.strip()[:200]}"
            )
        return _parse_create_response(resp.content)
