"""Shared fixtures: sample CSV files and a recording stand-in for the Metadata API."""
import pytest

SAMPLE_CSV = """fullName,label,type,length,precision,scale,description,formula,picklistValues,defaultValue,required,externalId,unique,caseSensitive,inlineHelpText
Account_Number__c,Account Number,Text,20,,,Unique identifier for the account,,,,TRUE,TRUE,TRUE,FALSE,Enter the account's unique number.
Order_Total__c,Order Total,Currency,,18,2,The total value of the order,,,0.00,TRUE,FALSE,FALSE,FALSE,
Is_Active__c,Is Active,Checkbox,,,,,,,,FALSE,FALSE,FALSE,FALSE,Check if the record is active.
Status__c,Status,Picklist,,,,,,"New,In Progress,Completed",New,TRUE,FALSE,FALSE,FALSE,Select the current status.
"""

SAMPLE_FIELD_NAMES = ["Account_Number__c", "Order_Total__c", "Is_Active__c", "Status__c"]


class FakeMetadataClient:
    """Records each create_metadata call and answers with a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def create_metadata(self, metadata_type, object_name, descriptors):
        self.calls.append((metadata_type, object_name, list(descriptors)))
        if self.error is not None:
            raise self.error
        if self.response is None:
            return [{"fullName": f"{object_name}.{d.full_name}", "success": True, "errors": []}
                    for d in descriptors]
        return self.response


@pytest.fixture
def sample_csv(tmp_path):
    path = tmp_path / "fields.csv"
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    return str(path)


@pytest.fixture
def write_csv(tmp_path):
    def _write(content, name="fields.csv"):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return str(path)
    return _write


@pytest.fixture
def staging_root(tmp_path):
    root = tmp_path / "staging"
    root.mkdir()
    return str(root)


@pytest.fixture
def fake_client():
    return FakeMetadataClient()


@pytest.fixture
def make_client():
    return FakeMetadataClient


@pytest.fixture
def password_login(monkeypatch):
    """Username/password credentials and an empty per-thread connection cache."""
    import threading

    from sffield.config import settings
    from sffield.services import salesforce

    monkeypatch.setattr(settings, "username", "admin@example.com")
    monkeypatch.setattr(settings, "password", "secret")
    monkeypatch.setattr(settings, "security_token", "tok")
    monkeypatch.setattr(settings, "session_id", "")
    monkeypatch.setattr(settings, "instance_url", "")
    monkeypatch.setattr(salesforce, "local", threading.local())
    return settings
