"""Kind → entity class registry and UI kind-name resolution."""

from strategy_engine.domain.exceptions import ValidationError

from .base import Entity, EntityKind
from .influence import Influence
from .portfolio import Brand, Location, RestaurantCategory, restaurant_class
from .signal import Signal
from .strategy import Initiative, Project, Theme, Vision, Year

_ENTITY_CLASSES: dict[EntityKind, type[Entity]] = {
    EntityKind.YEAR: Year,
    EntityKind.VISION: Vision,
    EntityKind.THEME: Theme,
    EntityKind.INITIATIVE: Initiative,
    EntityKind.PROJECT: Project,
    EntityKind.BRAND: Brand,
    EntityKind.LOCATION: Location,
    EntityKind.INFLUENCE: Influence,
    EntityKind.SIGNAL: Signal,
}

# Kinds persisted in the Primary Store; signals live in the Signal Service.
PRIMARY_KINDS: tuple[EntityKind, ...] = tuple(
    kind for kind in EntityKind if kind is not EntityKind.SIGNAL
)

# Logical kinds sharing the new_restaurants collection.
_KIND_ALIASES: dict[str, tuple[EntityKind, RestaurantCategory | None]] = {
    "newrestaurant": (EntityKind.NEW_RESTAURANT, None),
    "new_restaurant": (EntityKind.NEW_RESTAURANT, None),
    "new_restaurants": (EntityKind.NEW_RESTAURANT, None),
    "reconstruction": (EntityKind.NEW_RESTAURANT, RestaurantCategory.FACELIFT),
    "facelift": (EntityKind.NEW_RESTAURANT, RestaurantCategory.FACELIFT),
}


def resolve_kind(
    name: EntityKind | str,
) -> tuple[EntityKind, RestaurantCategory | None]:
    """Map a UI kind name onto a store kind plus an optional restaurant category."""
    if isinstance(name, EntityKind):
        return name, None
    key = name.strip().lower()
    if key in _KIND_ALIASES:
        return _KIND_ALIASES[key]
    for kind in EntityKind:
        if key in (kind.value, kind.collection):
            return kind, None
    raise ValidationError(f"unknown entity kind '{name}'")


def entity_class(
    kind: EntityKind, category: RestaurantCategory | str | None = None
) -> type[Entity]:
    if kind is EntityKind.NEW_RESTAURANT:
        return restaurant_class(category)
    return _ENTITY_CLASSES[kind]
