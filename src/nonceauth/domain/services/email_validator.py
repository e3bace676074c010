"""Email address format validation."""

import re

from nonceauth.core.exceptions import ErrorDetail, ValidationError

EMAIL_PATTERN = re.compile(
    r"^(([^<>()\[\]\\.,;:\s@\"]+(\.[^<>()\[\]\\.,;:\s@\"]+)*)|(\".+\"))"
    r"@((\[[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}\.[0-9]{1,3}])"
    r"|(([a-zA-Z\-0-9]+\.)+[a-zA-Z]{2,}))$"
)


def validate_email_address(value: object, field: str = "email_address") -> list[ErrorDetail]:
    """Check that ``value`` looks like ``name@domain.tld``.

    Args:
        value: The submitted address.
        field: Field name reported in the error details.

    Returns:
        List of validation errors. Empty list if the address is valid.
    """
    if not isinstance(value, str) or not value:
        return [ErrorDetail(field=field, message="Please enter your email address.", code="required")]
    if not EMAIL_PATTERN.match(value):
        return [
            ErrorDetail(
                field=field,
                message='Your email address must be in the form "name@domain.tld".',
                code="invalid_format",
            )
        ]
    return []


def require_email_address(value: object, field: str = "email_address") -> str:
    """Return ``value`` if it is a valid address.

    Raises:
        ValidationError: With field details when the address is invalid.
    """
    errors = validate_email_address(value, field)
    if errors:
        raise ValidationError(details=errors)
    return value  # type: ignore[return-value]
