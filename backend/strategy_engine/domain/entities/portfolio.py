"""Portfolio entities: brands, their locations, and planned restaurants."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

from strategy_engine.domain.exceptions import ValidationError

from .base import Entity, EntityKind


def _empty_social_links() -> dict[str, str]:
    return {"web": "", "instagram": "", "facebook": ""}


@dataclass(frozen=True)
class Brand(Entity):
    name: str = ""
    foundation_year: str = ""
    concept_short: str = ""
    description: str = ""
    logo_url: str = ""
    social_links: dict[str, str] = field(default_factory=_empty_social_links)
    contact: str = ""
    account_manager: str = ""

    kind: ClassVar[EntityKind] = EntityKind.BRAND


@dataclass(frozen=True)
class Location(Entity):
    """A physical venue operated under a brand."""

    brand_id: str | None = None
    name: str = ""
    address: str = ""

    kind: ClassVar[EntityKind] = EntityKind.LOCATION
    parent_fields: ClassVar[dict[str, EntityKind]] = {"brand_id": EntityKind.BRAND}


class RestaurantCategory(str, Enum):
    """Discriminant of the NewRestaurant tagged union."""

    NEW = "new"
    FACELIFT = "facelift"


class NewOpeningPhase(str, Enum):
    IDEA = "idea"
    PLANNING = "planning"
    CONSTRUCTION = "construction"
    PRE_OPENING = "pre_opening"
    OPENED = "opened"


class FaceliftPhase(str, Enum):
    IDEA = "idea"
    PLANNING = "planning"
    CLOSED = "closed"
    RECONSTRUCTION = "reconstruction"
    REOPENED = "reopened"


@dataclass(frozen=True)
class RestaurantPlan(Entity):
    """Fields shared by both variants stored in the ``new_restaurants`` collection."""

    category: RestaurantCategory = RestaurantCategory.NEW
    title: str = ""
    description: str = ""
    brand_ids: tuple[str, ...] = ()
    contact: str = ""
    account_manager: str = ""
    social_links: dict[str, str] = field(default_factory=_empty_social_links)
    sandbox_position: dict[str, Any] | None = None

    kind: ClassVar[EntityKind] = EntityKind.NEW_RESTAURANT
    variant: ClassVar[RestaurantCategory]
    link_fields: ClassVar[frozenset[str]] = frozenset({"brand_ids"})
    immutable_fields: ClassVar[frozenset[str]] = Entity.immutable_fields | {"category"}

    def __post_init__(self) -> None:
        if self.category is not self.variant:
            raise ValidationError(
                f"{type(self).__name__} requires category '{self.variant.value}'",
                field="category",
            )


@dataclass(frozen=True)
class NewOpening(RestaurantPlan):
    """A brand-new restaurant: opening date and concept."""

    category: RestaurantCategory = RestaurantCategory.NEW
    opening_date: str | None = None
    concept_summary: str = ""
    phase: NewOpeningPhase = NewOpeningPhase.IDEA

    variant: ClassVar[RestaurantCategory] = RestaurantCategory.NEW
    enum_fields: ClassVar[dict[str, type[Enum]]] = {
        "category": RestaurantCategory,
        "phase": NewOpeningPhase,
    }


@dataclass(frozen=True)
class Facelift(RestaurantPlan):
    """Reconstruction of an existing venue: closure and reopening."""

    category: RestaurantCategory = RestaurantCategory.FACELIFT
    location_id: str | None = None
    closure_date: str | None = None
    reopening_date: str | None = None
    reconstruction_scope: str = ""
    phase: FaceliftPhase = FaceliftPhase.IDEA

    variant: ClassVar[RestaurantCategory] = RestaurantCategory.FACELIFT
    enum_fields: ClassVar[dict[str, type[Enum]]] = {
        "category": RestaurantCategory,
        "phase": FaceliftPhase,
    }
    optional_parent_fields: ClassVar[dict[str, EntityKind]] = {
        "location_id": EntityKind.LOCATION,
    }


NewRestaurant = NewOpening | Facelift

_RESTAURANT_CLASSES: dict[RestaurantCategory, type[RestaurantPlan]] = {
    RestaurantCategory.NEW: NewOpening,
    RestaurantCategory.FACELIFT: Facelift,
}


def restaurant_class(category: RestaurantCategory | str | None) -> type[RestaurantPlan]:
    """Pick the union member for a ``category`` value (missing means ``new``)."""
    if category is None or category == "":
        return NewOpening
    try:
        return _RESTAURANT_CLASSES[RestaurantCategory(category)]
    except ValueError:
        raise ValidationError(
            f"'{category}' is not one of: new, facelift", field="category"
        ) from None
