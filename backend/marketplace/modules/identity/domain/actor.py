"""
Actor domain types.

An actor is either a Client or a Provider. Both share the same credential
lifecycle; providers additionally carry a profile (display name, free-form
attributes) and a postal address from which coordinates are derived.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Generic, TypeVar

from marketplace.core.errors import MarketplaceError

ActorT = TypeVar("ActorT")


class ActorKind(Enum):
    """The two kinds of marketplace participants."""

    CLIENT = "client"
    PROVIDER = "provider"

    @property
    def session_key(self) -> str:
        """Key under which the actor id is stored in a session."""
        return f"{self.value}Id"


@dataclass(frozen=True)
class Credentials:
    """Username, email and plaintext password as submitted at registration."""

    username: str
    email: str
    password: str

    def __post_init__(self):
        object.__setattr__(self, "username", (self.username or "").strip())
        object.__setattr__(self, "email", normalize_email(self.email))

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, email={self.email!r})"


@dataclass(frozen=True)
class ProviderProfile:
    """Provider-only registration data besides the address."""

    name: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FieldError:
    """An error tagged with the input field it pertains to."""

    field: str
    message: str

    @classmethod
    def from_error(cls, error: MarketplaceError) -> "FieldError":
        field_name, message = error.to_field_error()
        return cls(field=field_name, message=message)


@dataclass
class ActorResult(Generic[ActorT]):
    """Either an actor payload or a non-empty list of field errors."""

    actor: ActorT | None = None
    errors: list[FieldError] | None = None

    @classmethod
    def success(cls, actor: ActorT) -> "ActorResult[ActorT]":
        return cls(actor=actor)

    @classmethod
    def failure(cls, *errors: FieldError | MarketplaceError) -> "ActorResult[ActorT]":
        return cls(
            errors=[
                FieldError.from_error(e) if isinstance(e, MarketplaceError) else e
                for e in errors
            ]
        )

    @property
    def ok(self) -> bool:
        return not self.errors


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_email_identifier(username_or_email: str) -> bool:
    """Login identifiers are classified purely by the presence of ``@``."""
    return "@" in username_or_email
