"""Tests for credential validation and actor domain types."""

import pytest

from marketplace.core.config import SecurityConfig
from marketplace.core.errors import UniquenessViolationError
from marketplace.modules.identity.domain.actor import (
    ActorKind,
    ActorResult,
    Credentials,
    FieldError,
    is_email_identifier,
)
from marketplace.modules.identity.domain.validation import (
    CredentialPolicy,
    is_valid_email,
    validate_password,
    validate_register_inputs,
    validate_username,
)


class TestCredentialPolicy:
    def test_defaults(self):
        policy = CredentialPolicy()

        assert policy.username_min_length == 3
        assert policy.password_min_length == 3

    def test_from_config(self):
        policy = CredentialPolicy.from_config(SecurityConfig(password_min_length=8))

        assert policy.password_min_length == 8


class TestValidators:
    @pytest.mark.parametrize("email", ["a@x.com", "first.last@mail.co.uk"])
    def test_valid_emails(self, email):
        assert is_valid_email(email)

    @pytest.mark.parametrize("email", ["", "ax.com", "a@", "@x.com", "a b@x.com"])
    def test_invalid_emails(self, email):
        assert not is_valid_email(email)

    def test_username_rules(self):
        policy = CredentialPolicy()

        assert validate_username("bob", policy) is None
        assert validate_username("bo", policy) == FieldError(
            "username", "length must be greater than 2"
        )
        assert validate_username("bob@", policy) == FieldError("username", "cannot include an @")

    def test_password_minimum_follows_policy(self):
        policy = CredentialPolicy(password_min_length=6)

        assert validate_password("12345", policy) == FieldError(
            "password", "length must be greater than 5"
        )
        assert validate_password("123456", policy) is None

    def test_register_inputs_valid(self):
        credentials = Credentials(username="alice", email="a@x.com", password="secret123")

        assert validate_register_inputs(credentials, CredentialPolicy()) == []


class TestActorTypes:
    def test_credentials_normalize_and_hide_password(self):
        credentials = Credentials(username="  alice ", email=" A@X.Com ", password="secret123")

        assert credentials.username == "alice"
        assert credentials.email == "a@x.com"
        assert "secret123" not in repr(credentials)

    def test_session_keys(self):
        assert ActorKind.CLIENT.session_key == "clientId"
        assert ActorKind.PROVIDER.session_key == "providerId"

    def test_identifier_classification_is_syntactic(self):
        assert is_email_identifier("a@x.com")
        assert is_email_identifier("@")
        assert not is_email_identifier("alice")

    def test_failure_from_error(self):
        error = UniquenessViolationError(
            "Duplicate email on providers",
            column="email",
            user_message="this email already exists",
        )

        result = ActorResult.failure(error)

        assert not result.ok
        assert result.errors == [FieldError("username", "this email already exists")]
