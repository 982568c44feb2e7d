from .base import AUDIT_FIELDS, Entity, EntityKind, parse_timestamp
from .identity import Identity
from .influence import Influence, InfluenceType
from .mutation import (
    MutationOperation,
    MutationStatus,
    PendingMutation,
    ReconciliationPolicy,
)
from .portfolio import (
    Brand,
    Facelift,
    FaceliftPhase,
    Location,
    NewOpening,
    NewOpeningPhase,
    NewRestaurant,
    RestaurantCategory,
    RestaurantPlan,
    restaurant_class,
)
from .registry import PRIMARY_KINDS, entity_class, resolve_kind
from .signal import CONVERSION_FIELDS, Signal, SignalStatus
from .strategy import (
    Initiative,
    InitiativeStatus,
    Priority,
    Project,
    ProjectStatus,
    Theme,
    Vision,
    Year,
)

__all__ = [
    "AUDIT_FIELDS",
    "Entity",
    "EntityKind",
    "parse_timestamp",
    "Identity",
    "Influence",
    "InfluenceType",
    "MutationOperation",
    "MutationStatus",
    "PendingMutation",
    "ReconciliationPolicy",
    "Brand",
    "Facelift",
    "FaceliftPhase",
    "Location",
    "NewOpening",
    "NewOpeningPhase",
    "NewRestaurant",
    "RestaurantCategory",
    "RestaurantPlan",
    "restaurant_class",
    "PRIMARY_KINDS",
    "entity_class",
    "resolve_kind",
    "CONVERSION_FIELDS",
    "Signal",
    "SignalStatus",
    "Initiative",
    "InitiativeStatus",
    "Priority",
    "Project",
    "ProjectStatus",
    "Theme",
    "Vision",
    "Year",
]
