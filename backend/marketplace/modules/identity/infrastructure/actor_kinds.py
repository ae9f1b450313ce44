"""Per-kind capabilities that parameterise the generic identity code."""

from dataclasses import dataclass, field

from sqlalchemy.orm import Load, selectinload

from marketplace.modules.identity.domain.actor import ActorKind
from marketplace.modules.identity.infrastructure.models import (
    ActorModelMixin,
    ClientModel,
    ProviderModel,
)


@dataclass(frozen=True)
class ActorKindSpec:
    """
    Everything the identity layer needs to know about one actor kind.

    Attributes:
        kind: Which actor kind this describes
        model: ORM model backing the kind
        related: Relationship names loaded with every fetched actor
        accepts_profile: Whether registration takes profile and address data
    """

    kind: ActorKind
    model: type[ActorModelMixin]
    related: tuple[str, ...] = field(default=())
    accepts_profile: bool = False

    def load_options(self) -> list[Load]:
        return [selectinload(getattr(self.model, name)) for name in self.related]


CLIENT = ActorKindSpec(kind=ActorKind.CLIENT, model=ClientModel)

PROVIDER = ActorKindSpec(
    kind=ActorKind.PROVIDER,
    model=ProviderModel,
    related=("reviews",),
    accepts_profile=True,
)
