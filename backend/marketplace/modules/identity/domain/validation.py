"""Credential validation rules."""

from dataclasses import dataclass

from email_validator import EmailNotValidError, validate_email

from marketplace.core.config import SecurityConfig
from marketplace.modules.identity.domain.actor import Credentials, FieldError


@dataclass(frozen=True)
class CredentialPolicy:
    """Minimum requirements for usernames and passwords."""

    username_min_length: int = 3
    password_min_length: int = 3

    @classmethod
    def from_config(cls, config: SecurityConfig) -> "CredentialPolicy":
        return cls(
            username_min_length=config.username_min_length,
            password_min_length=config.password_min_length,
        )


def is_valid_email(email: str) -> bool:
    """Syntax-only email check; deliverability is never checked."""
    if not email or "@" not in email:
        return False
    try:
        validate_email(email, check_deliverability=False)
    except EmailNotValidError:
        return False
    return True


def validate_username(username: str, policy: CredentialPolicy) -> FieldError | None:
    if len(username) < policy.username_min_length:
        return FieldError(
            "username", f"length must be greater than {policy.username_min_length - 1}"
        )
    if "@" in username:
        return FieldError("username", "cannot include an @")
    return None


def validate_password(
    password: str, policy: CredentialPolicy, field: str = "password"
) -> FieldError | None:
    if len(password or "") < policy.password_min_length:
        return FieldError(field, f"length must be greater than {policy.password_min_length - 1}")
    return None


def validate_register_inputs(
    credentials: Credentials, policy: CredentialPolicy
) -> list[FieldError]:
    """
    Validate registration credentials.

    All failures are reported together, ordered username, email, password.

    Args:
        credentials: Submitted credentials
        policy: Length requirements

    Returns:
        list[FieldError]: Empty when the credentials are acceptable
    """
    errors = []

    username_error = validate_username(credentials.username, policy)
    if username_error:
        errors.append(username_error)

    if not is_valid_email(credentials.email):
        errors.append(FieldError("email", "invalid email"))

    password_error = validate_password(credentials.password, policy)
    if password_error:
        errors.append(password_error)

    return errors
