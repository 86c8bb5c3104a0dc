"""Unit tests for request validation helpers."""

import pytest

from container_control.config.extension import ExtensionConfig
from container_control.models.errors import (
    ConfirmationRequiredError,
    OperationFailedError,
    ServiceUnavailableError,
    ValidationError,
)
from container_control.models.results import ErrorKind, OperationResult
from container_control.utils.request_helpers import ensure_confirmed, ensure_success
from container_control.utils.validation import is_valid_resource_name, validate_resource_name


class TestResourceNames:
    """Test volume and network name checks."""

    @pytest.mark.parametrize("name", ["data", "my-vol_1", "net.v2", "0cache"])
    def test_valid(self, name):
        assert is_valid_resource_name(name) is True
        assert validate_resource_name(name) == name

    @pytest.mark.parametrize("name", ["", "-data", ".hidden", "a b", "x;rm", "vol/1", "data\n"])
    def test_invalid(self, name):
        assert is_valid_resource_name(name) is False

    def test_error_details(self):
        with pytest.raises(ValidationError) as exc_info:
            validate_resource_name("bad name", kind="volume")

        error = exc_info.value
        assert "volume" in error.message
        assert error.details[0].code == "invalid_name"


class TestEnsureSuccess:
    """Test mapping of failed results to exceptions."""

    def test_returns_payload(self):
        assert ensure_success(OperationResult.ok([1, 2]), "list") == [1, 2]

    def test_failure_maps_to_502(self):
        with pytest.raises(OperationFailedError) as exc_info:
            ensure_success(OperationResult.fail("Error: boom", exit_code=2), "start container")

        error = exc_info.value
        assert error.status_code == 502
        assert error.message == "Failed to start container: Error: boom"
        assert error.details[0].message == "2"

    def test_timeout_maps_to_504(self):
        result = OperationResult.fail("timed out", exit_code=124, error_kind=ErrorKind.TIMEOUT)
        with pytest.raises(OperationFailedError) as exc_info:
            ensure_success(result, "pull image")
        assert exc_info.value.status_code == 504

    def test_missing_binary_maps_to_503(self):
        result = OperationResult.fail(
            "Container CLI not found: container", error_kind=ErrorKind.BINARY_NOT_FOUND
        )
        with pytest.raises(ServiceUnavailableError) as exc_info:
            ensure_success(result, "list containers")
        assert exc_info.value.status_code == 503


class TestEnsureConfirmed:
    """Test the confirm-before-delete policy."""

    def test_requires_confirmation(self):
        with pytest.raises(ConfirmationRequiredError) as exc_info:
            ensure_confirmed(ExtensionConfig(), False, "Delete volume data")
        assert exc_info.value.status_code == 428

    def test_confirmed(self):
        ensure_confirmed(ExtensionConfig(), True, "Delete volume data")

    def test_policy_off(self):
        ensure_confirmed(ExtensionConfig(confirm_before_delete=False), False, "Delete volume data")
