"""
Identity GraphQL types.

Object types for clients, providers and their reviews, the response envelopes
returned by identity operations, and the input types they accept.
"""

from datetime import datetime

import strawberry
from strawberry.scalars import JSON

from marketplace.modules.identity.domain.actor import (
    ActorResult,
    Credentials,
    FieldError,
    ProviderProfile,
)
from marketplace.modules.identity.infrastructure.models import (
    ClientModel,
    ProviderModel,
    ReviewModel,
)
from marketplace.shared.value_objects import PostalAddress

# ============================================================================
# Object types
# ============================================================================


@strawberry.type(name="FieldError", description="An error tied to one input field.")
class FieldErrorType:
    field: str
    message: str

    @classmethod
    def from_domain(cls, error: FieldError) -> "FieldErrorType":
        return cls(field=error.field, message=error.message)


@strawberry.type(name="Review")
class ReviewType:
    id: int
    provider_id: int
    client_id: int | None
    rating: int
    body: str | None
    created_at: datetime

    @classmethod
    def from_model(cls, model: ReviewModel) -> "ReviewType":
        return cls(
            id=model.id,
            provider_id=model.provider_id,
            client_id=model.client_id,
            rating=model.rating,
            body=model.body,
            created_at=model.created_at,
        )


@strawberry.type(name="Client")
class ClientType:
    id: int
    username: str
    email: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, model: ClientModel) -> "ClientType":
        return cls(
            id=model.id,
            username=model.username,
            email=model.email,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


@strawberry.type(name="Provider")
class ProviderType:
    id: int
    username: str
    email: str
    name: str | None
    attributes: JSON
    country: str | None
    state: str | None
    city: str | None
    street: str | None
    zipcode: str | None
    latitude: float | None
    longitude: float | None
    reviews: list[ReviewType]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, model: ProviderModel) -> "ProviderType":
        return cls(
            id=model.id,
            username=model.username,
            email=model.email,
            name=model.name,
            attributes=model.attributes or {},
            country=model.country,
            state=model.state,
            city=model.city,
            street=model.street,
            zipcode=model.zipcode,
            latitude=model.latitude,
            longitude=model.longitude,
            reviews=[ReviewType.from_model(review) for review in model.reviews],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )


# ============================================================================
# Response envelopes
# ============================================================================


@strawberry.type
class ClientResponse:
    errors: list[FieldErrorType] | None = None
    client: ClientType | None = None

    @classmethod
    def from_result(cls, result: ActorResult[ClientModel]) -> "ClientResponse":
        if not result.ok:
            return cls(errors=[FieldErrorType.from_domain(e) for e in result.errors])
        return cls(client=ClientType.from_model(result.actor))


@strawberry.type
class ClientsResponse:
    errors: list[FieldErrorType] | None = None
    clients: list[ClientType] | None = None


@strawberry.type
class ProviderResponse:
    errors: list[FieldErrorType] | None = None
    provider: ProviderType | None = None

    @classmethod
    def from_result(cls, result: ActorResult[ProviderModel]) -> "ProviderResponse":
        if not result.ok:
            return cls(errors=[FieldErrorType.from_domain(e) for e in result.errors])
        return cls(provider=ProviderType.from_model(result.actor))


# ============================================================================
# Inputs
# ============================================================================


@strawberry.input
class UsernamePasswordInput:
    username: str
    email: str
    password: str

    def to_credentials(self) -> Credentials:
        return Credentials(username=self.username, email=self.email, password=self.password)


@strawberry.input(description="Free-form provider attributes.")
class AttributesInput:
    attributes: JSON | None = None


@strawberry.input(description="Provider display name and postal address.")
class ProviderInput:
    name: str | None = None
    country: str | None = None
    state: str | None = None
    city: str | None = None
    street: str | None = None
    zipcode: str | None = None

    def to_address(self) -> PostalAddress:
        return PostalAddress(
            country=self.country,
            state=self.state,
            city=self.city,
            street=self.street,
            zipcode=self.zipcode,
        )


def provider_profile(
    attributes_input: AttributesInput | None, provider_input: ProviderInput | None
) -> ProviderProfile:
    attributes = attributes_input.attributes if attributes_input else None
    return ProviderProfile(
        name=provider_input.name if provider_input else None,
        attributes=dict(attributes) if isinstance(attributes, dict) else {},
    )
