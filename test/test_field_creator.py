import logging
from pathlib import Path

import pytest

from sffield.errors import (
    FieldCreationError,
    InvalidFieldDefinitionError,
    InvalidInvocationError,
    NoFieldDefinitionsError,
    NoMetadataGeneratedError,
    RemoteDeploymentError,
)
from sffield.services import field_creator
from sffield.services.field_creator import create_fields

from conftest import SAMPLE_FIELD_NAMES

EXISTING_LAST = [
    {"success": True},
    {"success": True},
    {"success": True},
    {"success": False, "errors": ["Field already exists"]},
]


def test_creates_fields_from_csv(sample_csv, staging_root, fake_client, caplog):
    caplog.set_level(logging.INFO)

    result = create_fields("Account", sample_csv, "test@example.com",
                           client=fake_client, staging_root=staging_root)

    assert result.deployed_fields == SAMPLE_FIELD_NAMES
    staged = Path(result.path)
    assert (staged / "package.xml").is_file()
    assert sorted(p.name for p in (staged / "objects" / "Account" / "fields").iterdir()) == sorted(
        f"{name}.field-meta.xml" for name in SAMPLE_FIELD_NAMES
    )
    output = caplog.text
    assert "Target Object: Account" in output
    assert "Found 4 field definitions" in output
    assert "Successfully deployed field metadata to the target org" in output


def test_uses_target_object_everywhere(sample_csv, staging_root, fake_client):
    result = create_fields("Invoice__c", sample_csv, "test@example.com",
                           client=fake_client, staging_root=staging_root)

    assert (Path(result.path) / "objects" / "Invoice__c" / "fields").is_dir()
    assert fake_client.calls[0][1] == "Invoice__c"
    assert "Invoice__c.Status__c" in (Path(result.path) / "package.xml").read_text()


def test_existing_field_fails_the_run(sample_csv, staging_root, make_client):
    client = make_client(response=EXISTING_LAST)

    with pytest.raises(RemoteDeploymentError) as exc_info:
        create_fields("Account", sample_csv, "test@example.com", client=client, staging_root=staging_root)

    assert exc_info.value.count == 1


def test_skip_existing(sample_csv, staging_root, make_client):
    client = make_client(response=EXISTING_LAST)

    result = create_fields("Account", sample_csv, "test@example.com", skip_existing=True,
                           client=client, staging_root=staging_root)

    assert len(result.deployed_fields) == 4


def test_boolean_field_is_normalized(write_csv, staging_root, fake_client, caplog):
    caplog.set_level(logging.INFO)
    path = write_csv("fullName,label,type,length,precision,scale,description\n"
                     "VIP_Customer__c,VIP Customer,Boolean,,,,Indicates if the customer is a VIP\n")

    create_fields("Account", path, "test@example.com", client=fake_client, staging_root=staging_root)

    assert "Normalized field type: VIP_Customer__c from Boolean to Checkbox" in caplog.text
    assert fake_client.calls[0][2][0].type == "Checkbox"


def test_empty_csv_stops_before_building(write_csv, staging_root, fake_client, monkeypatch):
    path = write_csv("fullName,label,type\n")
    monkeypatch.setattr(field_creator, "build_field_metadata",
                        lambda *a, **kw: pytest.fail("descriptors should not be built"))

    with pytest.raises(NoFieldDefinitionsError):
        create_fields("Account", path, "test@example.com", client=fake_client, staging_root=staging_root)

    assert fake_client.calls == []


def test_invalid_row_aborts_before_staging(write_csv, staging_root, fake_client):
    path = write_csv("fullName,label,type\nA__c,A,Text\nB__c,,Text\n")

    with pytest.raises(InvalidFieldDefinitionError):
        create_fields("Account", path, "test@example.com", client=fake_client, staging_root=staging_root)

    assert list(Path(staging_root).iterdir()) == []
    assert fake_client.calls == []


def test_nothing_built(sample_csv, staging_root, fake_client, monkeypatch):
    monkeypatch.setattr(field_creator, "build_field_metadata", lambda fields, staging: [])

    with pytest.raises(NoMetadataGeneratedError):
        create_fields("Account", sample_csv, "test@example.com", client=fake_client, staging_root=staging_root)

    assert fake_client.calls == []


@pytest.mark.parametrize("target_object,source_file", [("", "fields.csv"), ("Account", "fields.txt")])
def test_invocation_checks(target_object, source_file, fake_client):
    with pytest.raises(InvalidInvocationError):
        create_fields(target_object, source_file, "test@example.com", client=fake_client)


def test_missing_source_file(tmp_path, fake_client):
    with pytest.raises(InvalidInvocationError, match="not found"):
        create_fields("Account", str(tmp_path / "missing.csv"), "test@example.com", client=fake_client)


def test_unexpected_errors_are_wrapped(sample_csv, staging_root, monkeypatch, fake_client):
    def explode(*args, **kwargs):
        raise KeyError("bad state")

    monkeypatch.setattr(field_creator, "normalize_field_records", explode)

    with pytest.raises(FieldCreationError, match="Error creating fields"):
        create_fields("Account", sample_csv, "test@example.com", client=fake_client, staging_root=staging_root)
