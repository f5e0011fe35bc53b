"""
Input validation for clone requests.

This module holds the hostname rule shared by the Linux and Windows identity
builders, plus checks on the target VM name.
"""

import re
from typing import Any, Optional

from .exceptions import ValidationError


class OptionValidator:
    """Validation utilities for clone options."""

    # A single alphanumeric, or alphanumerics with interior hyphens
    HOSTNAME_PATTERN = re.compile(r"[a-zA-Z0-9]|[a-zA-Z0-9][a-zA-Z0-9-]*[a-zA-Z0-9]")

    # vCenter rejects inventory names longer than this
    VM_NAME_MAX_LENGTH = 80

    @staticmethod
    def validate_hostname(hostname: Any) -> str:
        """
        Validate a guest hostname against the DNS label grammar.

        Args:
            hostname: Hostname to validate

        Returns:
            str: Validated hostname

        Raises:
            ValidationError: If the hostname contains anything other than
                letters, digits and interior hyphens
        """
        if not isinstance(hostname, str) or not OptionValidator.HOSTNAME_PATTERN.fullmatch(
            hostname
        ):
            raise ValidationError(
                "only letters, numbers, or hyphens allowed in hostname", "hostname"
            )
        return hostname

    @staticmethod
    def validate_vm_name(name: Any) -> str:
        """
        Validate the inventory name of the VM to be created.

        Raises:
            ValidationError: If the name is empty or too long
        """
        if not name or not isinstance(name, str):
            raise ValidationError("VM name must be a non-empty string", "vm_name")

        if len(name) > OptionValidator.VM_NAME_MAX_LENGTH:
            raise ValidationError(
                f"VM name must be {OptionValidator.VM_NAME_MAX_LENGTH} characters or less",
                "vm_name",
            )

        return name


def hostname_for(options: Any, default_name: str) -> str:
    """
    Pick and validate the guest hostname.

    Args:
        options: Any object with an optional ``hostname`` attribute
        default_name: Used when ``options.hostname`` is not set

    Returns:
        str: The validated hostname
    """
    hostname: Optional[str] = getattr(options, "hostname", None)
    return OptionValidator.validate_hostname(default_name if hostname is None else hostname)
