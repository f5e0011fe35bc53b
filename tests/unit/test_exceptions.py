"""Unit tests for custom exceptions."""

import pytest
from vsphere_clone.exceptions import (
    VSphereCloneError, ConfigurationError, ConnectionError, NotFoundError,
    ValidationError, TaskError
)


class TestVSphereCloneError:
    """Test base VSphereCloneError exception."""

    def test_base_exception_initialization(self):
        """Test base exception can be created with message and error code."""
        error = VSphereCloneError("Test error", error_code=9999)
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.error_code == 9999

    def test_base_exception_default_error_code(self):
        """Test base exception has default error code."""
        error = VSphereCloneError("Test error")
        assert error.error_code == 2000

    def test_base_exception_inheritance(self):
        """Test base exception inherits from Exception."""
        assert isinstance(VSphereCloneError("Test error"), Exception)


class TestConfigurationError:
    """Test ConfigurationError exception."""

    def test_configuration_error_creation(self):
        """Test ConfigurationError carries its code."""
        error = ConfigurationError("Invalid configuration")
        assert str(error) == "Invalid configuration"
        assert error.error_code == 2001
        assert isinstance(error, VSphereCloneError)


class TestConnectionError:
    """Test ConnectionError exception."""

    def test_connection_error_with_host(self):
        """Test ConnectionError includes host information."""
        error = ConnectionError("invalid login", "vcenter.example.com")
        assert "vcenter.example.com" in str(error)
        assert "invalid login" in str(error)
        assert error.host == "vcenter.example.com"
        assert error.error_code == 2002

    def test_connection_error_shadows_builtin_only_in_module(self):
        """Test ConnectionError is not the builtin of the same name."""
        import builtins
        assert not issubclass(ConnectionError, builtins.ConnectionError)


class TestNotFoundError:
    """Test NotFoundError exception."""

    def test_not_found_error_fields(self):
        """Test NotFoundError names the kind and the missing object."""
        error = NotFoundError("datastore", "ds-9")
        assert str(error) == "datastore 'ds-9' not found"
        assert error.kind == "datastore"
        assert error.name == "ds-9"
        assert error.error_code == 2003


class TestValidationError:
    """Test ValidationError exception."""

    def test_validation_error_message_is_verbatim(self):
        """Test the message is not decorated so callers can match on it."""
        error = ValidationError("domain is required", "domain")
        assert str(error) == "domain is required"
        assert error.validation_type == "domain"
        assert error.error_code == 2004

    def test_validation_error_default_type(self):
        """Test ValidationError defaults its validation type."""
        assert ValidationError("bad").validation_type == "general"

    def test_validation_error_can_be_caught_as_base(self):
        """Test ValidationError is caught by the base class."""
        with pytest.raises(VSphereCloneError):
            raise ValidationError("bad input")


class TestTaskError:
    """Test TaskError exception."""

    def test_task_error_includes_task_name(self):
        """Test TaskError names the failed task."""
        error = TaskError("disk locked", "create_delta_disk")
        assert str(error) == "Task create_delta_disk failed: disk locked"
        assert error.task_name == "create_delta_disk"
        assert error.error_code == 2005

    def test_task_error_default_task_name(self):
        """Test TaskError has a default task name."""
        assert TaskError("boom").task_name == "unknown"
