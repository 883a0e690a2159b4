import pytest

from sffield.errors import RemoteDeploymentError, TransportError
from sffield.services.deployer import (
    OutcomeStatus,
    as_result_list,
    classify_results,
    deploy_fields,
    error_message,
)
from sffield.services.metadata_builder import FieldDescriptor

from conftest import SAMPLE_FIELD_NAMES

MIXED_RESPONSE = [
    {"success": True},
    {"success": True},
    {"success": True},
    {"success": False, "errors": ["Field already exists"]},
]


@pytest.fixture
def descriptors():
    return [FieldDescriptor(full_name=name, label=name, type="Text") for name in SAMPLE_FIELD_NAMES]


class TestResultShapes:
    def test_single_result_becomes_list(self):
        assert as_result_list({"success": True}) == [{"success": True}]

    def test_list_is_kept(self):
        assert as_result_list(MIXED_RESPONSE) == MIXED_RESPONSE

    def test_nothing_is_empty(self):
        assert as_result_list(None) == []

    def test_error_messages_are_joined(self):
        result = {"success": False, "errors": [{"message": "bad length"}, {"message": "bad scale"}]}

        assert error_message(result) == "bad length, bad scale"

    def test_single_error_object(self):
        assert error_message({"success": False, "errors": {"message": "nope"}}) == "nope"

    def test_no_errors_reported(self):
        assert error_message({"success": False}) == "Unknown error"


class TestClassifyResults:
    def test_existing_field_fails_without_skip(self, descriptors):
        report = classify_results("Account", descriptors, MIXED_RESPONSE, skip_existing=False)

        assert report.created == SAMPLE_FIELD_NAMES[:3]
        assert report.skipped == []
        assert [o.name for o in report.failed] == ["Status__c"]
        assert report.failed[0].message == "Field already exists"

    def test_existing_field_skipped(self, descriptors):
        report = classify_results("Account", descriptors, MIXED_RESPONSE, skip_existing=True)

        assert len(report.created) == 3
        assert report.skipped == ["Status__c"]
        assert report.failed == []
        assert report.deployed_fields == SAMPLE_FIELD_NAMES

    def test_already_a_field_named_counts_as_existing(self, descriptors):
        response = {"success": False, "errors": [{"message": "There is already a field named Account_Number"}]}

        report = classify_results("Account", descriptors[:1], response, skip_existing=True)

        assert report.outcomes[0].status == OutcomeStatus.SKIPPED_EXISTING

    def test_other_failures_never_skipped(self, descriptors):
        response = {"success": False, "errors": [{"message": "Invalid length"}]}

        report = classify_results("Account", descriptors[:1], response, skip_existing=True)

        assert report.outcomes[0].status == OutcomeStatus.FAILED

    def test_missing_results_are_failures(self, descriptors):
        report = classify_results("Account", descriptors, [{"success": True}])

        assert report.created == ["Account_Number__c"]
        assert len(report.failed) == 3

    def test_string_success_flag(self, descriptors):
        report = classify_results("Account", descriptors[:1], [{"success": "true"}])

        assert report.created == ["Account_Number__c"]


class TestDeployFields:
    def test_failure_raises_with_count(self, descriptors, make_client):
        client = make_client(response=MIXED_RESPONSE)

        with pytest.raises(RemoteDeploymentError) as exc_info:
            deploy_fields(client, "Account", descriptors, skip_existing=False)

        assert exc_info.value.count == 1
        assert exc_info.value.failures == {"Status__c": "Field already exists"}
        assert "Failed to create 1 fields" in exc_info.value.message

    def test_skip_existing_succeeds(self, descriptors, make_client):
        client = make_client(response=MIXED_RESPONSE)

        report = deploy_fields(client, "Account", descriptors, skip_existing=True)

        assert len(report.deployed_fields) == 4

    def test_submits_one_batch_for_the_target_object(self, descriptors, make_client):
        client = make_client()

        deploy_fields(client, "Invoice__c", descriptors)

        assert len(client.calls) == 1
        metadata_type, object_name, submitted = client.calls[0]
        assert (metadata_type, object_name) == ("CustomField", "Invoice__c")
        assert [d.full_name for d in submitted] == SAMPLE_FIELD_NAMES

    def test_transport_failure_is_wrapped(self, descriptors, make_client):
        cause = ConnectionError("connection reset")
        client = make_client(error=cause)

        with pytest.raises(TransportError) as exc_info:
            deploy_fields(client, "Account", descriptors)

        assert exc_info.value.__cause__ is cause
