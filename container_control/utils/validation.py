"""Validation of user-supplied resource names."""

import re

from ..models.errors import ErrorDetail, ValidationError

RESOURCE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$")


def is_valid_resource_name(name: str) -> bool:
    return bool(name) and RESOURCE_NAME_PATTERN.fullmatch(name) is not None


def validate_resource_name(name: str, kind: str = "resource") -> str:
    """Check a volume or network name before it reaches the CLI.

    Names must start with a letter or digit and contain only letters,
    digits, ``_``, ``.`` and ``-``.

    Raises:
        ValidationError: If the name does not match
    """
    if not is_valid_resource_name(name):
        raise ValidationError(
            f"Invalid {kind} name: {name!r}",
            details=[
                ErrorDetail(
                    field="name",
                    message=(
                        "Must start with a letter or digit and contain only "
                        "letters, digits, '_', '.' or '-'"
                    ),
                    code="invalid_name",
                )
            ],
        )
    return name
