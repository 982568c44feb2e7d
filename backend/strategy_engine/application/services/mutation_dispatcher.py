"""Mutation dispatcher — the single path from create/update/delete intents to
the entity store and the remote gateways.

Every intent is applied to the store synchronously (optimistic) and only
then handed to the remote sync runner as a background gateway call.
"""

import logging
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

from strategy_engine.application.interfaces import (
    IdentityProvider,
    PrimaryStoreGateway,
    SignalGateway,
)
from strategy_engine.application.services.remote_sync import RemoteSyncRunner
from strategy_engine.domain import links
from strategy_engine.domain.audit import AuditStamper
from strategy_engine.domain.cascade import CascadePolicy
from strategy_engine.domain.entities import (
    AUDIT_FIELDS,
    CONVERSION_FIELDS,
    Entity,
    EntityKind,
    InfluenceType,
    MutationOperation,
    PendingMutation,
    Priority,
    ProjectStatus,
    ReconciliationPolicy,
    RestaurantCategory,
    Signal,
    SignalStatus,
    entity_class,
    resolve_kind,
    restaurant_class,
)
from strategy_engine.domain.exceptions import EntityNotFoundError, ValidationError
from strategy_engine.domain.serialization import (
    entity_to_record,
    fields_to_camel,
    fields_to_record,
    to_snake,
)
from strategy_engine.domain.store import (
    EntityStore,
    with_inserted,
    with_moved,
    with_replaced,
    without,
)
from strategy_engine.infrastructure.logging.colored_logger import SyncLogger, SyncStage

logger = logging.getLogger(__name__)
slog = SyncLogger("MutationDispatcher")

# Asked before a deletion proceeds; the UI owns the actual dialog.
Confirmer = Callable[[EntityKind, str], bool]

_DEFAULT_SEEDS: dict[EntityKind, dict[str, Any]] = {
    EntityKind.YEAR: {"title": "202X"},
    EntityKind.VISION: {"title": "New vision"},
    EntityKind.THEME: {"title": "New theme", "priority": Priority.MEDIUM},
    EntityKind.INITIATIVE: {"title": "New initiative"},
    EntityKind.PROJECT: {"title": "New project", "status": ProjectStatus.IDEA},
    EntityKind.BRAND: {"name": "New brand"},
    EntityKind.LOCATION: {"name": "New location"},
    EntityKind.INFLUENCE: {"title": "New influence", "type": InfluenceType.EXTERNAL},
}
_RESTAURANT_TITLES = {
    RestaurantCategory.NEW: "New restaurant",
    RestaurantCategory.FACELIFT: "New facelift",
}
_LABEL_FIELDS = ("title", "name")

# kind → parent field that drag-and-drop may change
_MOVABLE: dict[EntityKind, str] = {
    EntityKind.VISION: "year_id",
    EntityKind.THEME: "vision_id",
    EntityKind.INITIATIVE: "theme_id",
    EntityKind.PROJECT: "theme_id",
}


def decline_all(kind: EntityKind, entity_id: str) -> bool:
    """Default confirmer: without a UI to ask, nothing is deleted unconfirmed."""
    return False


def new_entity_id() -> str:
    return uuid.uuid4().hex


def normalize_fields(patch: Mapping[str, Any] | None) -> dict[str, Any]:
    """Accept camelCase or snake_case keys."""
    return {to_snake(key): value for key, value in (patch or {}).items()}


@dataclass(frozen=True)
class PreparedUpdate:
    """A validated, stamped patch that has not been committed yet."""

    current: Entity
    updated: Entity
    fields: dict[str, Any]

    @property
    def previous(self) -> dict[str, Any]:
        return {name: getattr(self.current, name) for name in self.fields}


class MutationDispatcher:
    """Applies intents locally, then issues the matching gateway call.

    Gateway failures never unwind local state under
    ``ReconciliationPolicy.OPTIMISTIC_NO_ROLLBACK``; with
    ``REVERT_ON_FAILURE`` the touched records are restored and the
    mutation is marked reverted.
    """

    def __init__(
        self,
        store: EntityStore,
        primary_gateway: PrimaryStoreGateway,
        signal_gateway: SignalGateway,
        identity: IdentityProvider,
        runner: RemoteSyncRunner,
        *,
        stamper: AuditStamper | None = None,
        cascade: CascadePolicy | None = None,
        confirm: Confirmer | None = None,
        policy: ReconciliationPolicy = ReconciliationPolicy.OPTIMISTIC_NO_ROLLBACK,
        cascade_remote_deletes: bool = False,
    ):
        self._store = store
        self._primary = primary_gateway
        self._signals = signal_gateway
        self._identity = identity
        self._runner = runner
        self._stamper = stamper or AuditStamper()
        self._cascade = cascade or CascadePolicy()
        self._confirm = confirm or decline_all
        self._policy = policy
        self._cascade_remote_deletes = cascade_remote_deletes

    @property
    def policy(self) -> ReconciliationPolicy:
        return self._policy

    # ── Create ───────────────────────────────────────────────────────

    def build_new(
        self,
        kind: EntityKind | str,
        seed: Mapping[str, Any] | None = None,
        category: RestaurantCategory | str | None = None,
    ) -> Entity:
        """Return a validated, stamped record with a fresh id, without storing it."""
        kind, alias_category = resolve_kind(kind)
        if kind is EntityKind.SIGNAL:
            raise ValidationError("signals are created by the signal service")

        fields = normalize_fields(seed)
        for name in ("id", *AUDIT_FIELDS):
            fields.pop(name, None)
        seed_category = fields.pop("category", None) if kind is EntityKind.NEW_RESTAURANT else None
        implied = category or alias_category
        if implied is not None and seed_category not in (None, ""):
            if restaurant_class(seed_category) is not restaurant_class(implied):
                raise ValidationError(
                    f"'{getattr(seed_category, 'value', seed_category)}' conflicts "
                    f"with the '{RestaurantCategory(implied).value}' kind",
                    field="category",
                )
        cls = entity_class(kind, implied or seed_category)

        defaults = self._defaults(kind, getattr(cls, "variant", None))
        values = {**defaults, **fields}
        for label in _LABEL_FIELDS:
            if label in defaults and not str(values.get(label) or "").strip():
                values[label] = defaults[label]
        if kind is EntityKind.NEW_RESTAURANT:
            values["category"] = cls.variant

        identity = self._identity.current()
        entity = cls.build(
            id=new_entity_id(),
            **values,
            **self._stamper.stamp_create(identity.actor_id),
        )
        self._check_references(entity, entity.references())
        return entity

    def create(self, kind: EntityKind | str, seed: Mapping[str, Any] | None = None) -> str:
        """Insert a new record locally, then create it in the Primary Store."""
        entity = self.build_new(kind, seed)
        self._store.replace_collection(
            entity.kind, with_inserted(self._store.list(entity.kind), entity)
        )
        slog.step_complete(SyncStage.CREATE, f"Created {entity.kind.value} locally", id=entity.id)
        self._send_create(entity)
        return entity.id

    def create_sandbox_node(
        self, kind: EntityKind | str, position: Mapping[str, Any] | None = None
    ) -> str:
        """Create a node on the sandbox canvas under the first available parent."""
        kind, category = resolve_kind(kind)
        if "sandbox_position" not in entity_class(kind, category).field_names():
            raise ValidationError(f"{kind.value} cannot be placed on the sandbox")
        seed: dict[str, Any] = {"sandbox_position": dict(position) if position else None}
        parent_field = _MOVABLE.get(kind)
        if parent_field is not None:
            parent_kind = entity_class(kind).parent_fields[parent_field]
            parents = self._store.list(parent_kind)
            if not parents:
                raise ValidationError(
                    f"create a {parent_kind.value} before adding a {kind.value}",
                    field=parent_field,
                )
            seed[parent_field] = parents[0].id
        if category is not None:
            seed["category"] = category
        return self.create(kind, seed)

    # ── Update ───────────────────────────────────────────────────────

    def prepare_update(
        self,
        kind: EntityKind | str,
        entity_id: str,
        patch: Mapping[str, Any] | None,
        *,
        conversion: bool = False,
    ) -> PreparedUpdate | None:
        """Validate and stamp a patch. Returns None for an empty patch.

        ``conversion`` lets the conversion workflow set a signal's
        conversion fields, which direct updates may not.
        """
        kind, _ = resolve_kind(kind)
        current = self._require(kind, entity_id)
        changes = normalize_fields(patch)
        if not changes:
            return None
        self._guard_patch(current, changes, conversion=conversion)

        identity = self._identity.current()
        stamp = self._stamper.stamp_update(identity.actor_id, not_before=current.created_at)
        updated = current.apply({**changes, **stamp})
        refs = updated.references()
        self._check_references(updated, {name: refs[name] for name in changes if name in refs})
        return PreparedUpdate(
            current=current,
            updated=updated,
            fields={name: getattr(updated, name) for name in (*changes, *stamp)},
        )

    def update(
        self, kind: EntityKind | str, entity_id: str, patch: Mapping[str, Any] | None
    ) -> None:
        """Merge a partial patch locally, then send it to the owning gateway."""
        prepared = self.prepare_update(kind, entity_id, patch)
        if prepared is None:
            return
        entity = prepared.updated
        self._store.replace_collection(
            entity.kind, with_replaced(self._store.list(entity.kind), entity)
        )
        slog.step_complete(
            SyncStage.UPDATE,
            f"Updated {entity.kind.value} locally",
            id=entity.id,
            fields=",".join(prepared.fields),
        )
        self._send_update(prepared)

    def toggle_link(
        self, kind: EntityKind | str, entity_id: str, field: str, target_id: str
    ) -> tuple[str, ...]:
        """Add ``target_id`` to a link set, or remove it when already present."""
        kind, _ = resolve_kind(kind)
        current = self._require(kind, entity_id)
        name = to_snake(field)
        if name not in current.link_fields:
            raise ValidationError(f"not a link field of {kind.value}", field=name)
        toggled = links.toggle_link(getattr(current, name), target_id)
        self.update(kind, entity_id, {name: toggled})
        return toggled

    def move(
        self,
        kind: EntityKind | str,
        entity_id: str,
        new_parent_id: str,
        index: int | None = None,
    ) -> None:
        """Reparent a tree node and optionally reposition it among its new siblings."""
        kind, _ = resolve_kind(kind)
        parent_field = _MOVABLE.get(kind)
        if parent_field is None:
            raise ValidationError(f"{kind.value} cannot be moved")
        prepared = self.prepare_update(kind, entity_id, {parent_field: new_parent_id})
        entity = prepared.updated
        self._store.replace_collection(
            kind, with_moved(self._store.list(kind), entity, parent_field, index)
        )
        slog.step_complete(
            SyncStage.UPDATE, f"Moved {kind.value} locally", id=entity_id, parent=new_parent_id
        )
        self._send_update(prepared)

    # ── Delete ───────────────────────────────────────────────────────

    def delete(
        self, kind: EntityKind | str, entity_id: str, *, skip_confirm: bool = False
    ) -> bool:
        """Remove a record and its cascade set. Returns whether deletion proceeded."""
        kind, _ = resolve_kind(kind)
        if self._store.get(kind, entity_id) is None:
            logger.warning("Delete of unknown %s '%s' ignored", kind.value, entity_id)
            return False
        if not skip_confirm and not self._confirm(kind, entity_id):
            slog.detail(f"Deletion of {kind.value} declined", id=entity_id)
            return False

        plan = self._cascade.plan(self._store, kind, entity_id)
        removed = {
            k: [e for e in self._store.list(k) if e.id in ids]
            for k, ids in plan.removals.items()
        }
        self._store.replace_collections(
            {k: without(self._store.list(k), ids) for k, ids in plan.removals.items()}
        )
        slog.step_complete(SyncStage.DELETE, f"Deleted {kind.value} locally", id=entity_id)
        if plan.cascaded:
            slog.step_complete(
                SyncStage.CASCADE,
                f"Cascade removed {len(plan.cascaded)} dependent record(s)",
                **{k.collection: len(ids) for k, ids in plan.removals.items() if k is not kind},
            )

        targets = plan.order if self._cascade_remote_deletes else ((kind, entity_id),)
        for target_kind, target_id in targets:
            is_target = (target_kind, target_id) == (kind, entity_id)
            self._send_delete(target_kind, target_id, removed if is_target else None)
        return True

    # ── Remote calls ─────────────────────────────────────────────────

    def _send_create(self, entity: Entity) -> None:
        kind, entity_id = entity.kind, entity.id
        record = entity_to_record(entity)
        mutation = PendingMutation(
            operation=MutationOperation.CREATE,
            kind=kind,
            entity_id=entity_id,
            gateway=self._primary.gateway_name,
            payload=record,
            actor_id=entity.created_by,
        )
        self._runner.record(mutation)
        self._runner.submit(
            mutation,
            lambda: self._primary.create(kind, record),
            self._revert_handler(lambda: self._undo_create(kind, entity_id)),
        )

    def _send_update(self, prepared: PreparedUpdate) -> None:
        entity = prepared.updated
        kind, entity_id = entity.kind, entity.id
        if kind is EntityKind.SIGNAL:
            token = self._identity.current().credential
            payload = fields_to_camel(prepared.fields)
            gateway = self._signals.gateway_name
            call = lambda: self._signals.update(entity_id, payload, token)  # noqa: E731
        else:
            payload = fields_to_record(prepared.fields)
            gateway = self._primary.gateway_name
            call = lambda: self._primary.update(kind, entity_id, payload)  # noqa: E731

        mutation = PendingMutation(
            operation=MutationOperation.UPDATE,
            kind=kind,
            entity_id=entity_id,
            gateway=gateway,
            payload=payload,
            actor_id=entity.updated_by,
        )
        previous, written = prepared.previous, dict(prepared.fields)
        self._runner.record(mutation)
        self._runner.submit(
            mutation,
            call,
            self._revert_handler(
                lambda: self._undo_update(kind, entity_id, previous, written)
            ),
        )

    def _send_delete(
        self,
        kind: EntityKind,
        entity_id: str,
        removed: dict[EntityKind, list[Entity]] | None,
    ) -> None:
        if kind is EntityKind.SIGNAL:
            token = self._identity.current().credential
            gateway = self._signals.gateway_name
            call = lambda: self._signals.delete(entity_id, token)  # noqa: E731
        else:
            gateway = self._primary.gateway_name
            call = lambda: self._primary.delete(kind, entity_id)  # noqa: E731

        mutation = PendingMutation(
            operation=MutationOperation.DELETE,
            kind=kind,
            entity_id=entity_id,
            gateway=gateway,
            actor_id=self._identity.current().actor_id,
        )
        on_failure = None
        if removed is not None:
            on_failure = self._revert_handler(lambda: self._undo_delete(removed))
        self._runner.record(mutation)
        self._runner.submit(mutation, call, on_failure)

    # ── Reconciliation ───────────────────────────────────────────────

    def _revert_handler(
        self, undo: Callable[[], bool]
    ) -> Callable[[PendingMutation], None] | None:
        if self._policy is not ReconciliationPolicy.REVERT_ON_FAILURE:
            return None

        def revert(mutation: PendingMutation) -> None:
            if not undo():
                slog.detail(
                    f"Local {mutation.operation.value} of {mutation.kind.value} "
                    "already superseded; nothing to revert",
                    id=mutation.entity_id,
                )
                return
            mutation.mark_reverted()
            slog.step_complete(
                SyncStage.REVERT,
                f"Reverted local {mutation.operation.value} of {mutation.kind.value}",
                id=mutation.entity_id,
            )

        return revert

    def _undo_create(self, kind: EntityKind, entity_id: str) -> bool:
        if self._store.get(kind, entity_id) is None:
            return False
        # Records created under the failed one since then go with it.
        plan = self._cascade.plan(self._store, kind, entity_id)
        self._store.replace_collections(
            {k: without(self._store.list(k), ids) for k, ids in plan.removals.items()}
        )
        return True

    def _undo_update(
        self,
        kind: EntityKind,
        entity_id: str,
        previous: dict[str, Any],
        written: dict[str, Any],
    ) -> bool:
        current = self._store.get(kind, entity_id)
        if current is None:
            return False
        # Only fields still holding this update's values; later edits win.
        untouched = {
            name for name, value in written.items() if getattr(current, name) == value
        }
        restore = {
            name: previous[name] for name in untouched if name not in AUDIT_FIELDS
        }
        if not restore:
            return False
        restore.update((name, previous[name]) for name in untouched if name in AUDIT_FIELDS)
        self._store.replace_collection(
            kind, with_replaced(self._store.list(kind), current.apply(restore))
        )
        return True

    def _undo_delete(self, removed: dict[EntityKind, list[Entity]]) -> bool:
        missing = {
            kind: [e for e in entities if self._store.get(kind, e.id) is None]
            for kind, entities in removed.items()
        }
        if not any(missing.values()):
            return False
        self._store.replace_collections(
            {kind: [*self._store.list(kind), *entities] for kind, entities in missing.items()}
        )
        return True

    # ── Validation ───────────────────────────────────────────────────

    def _require(self, kind: EntityKind, entity_id: str) -> Entity:
        entity = self._store.get(kind, entity_id)
        if entity is None:
            raise EntityNotFoundError(kind.value, entity_id)
        return entity

    def _guard_patch(
        self, current: Entity, changes: Mapping[str, Any], *, conversion: bool
    ) -> None:
        for name in changes:
            if name in current.immutable_fields:
                raise ValidationError("field cannot be changed", field=name)
        if not isinstance(current, Signal) or conversion:
            return
        touched = CONVERSION_FIELDS & set(changes)
        if not touched:
            return
        if current.is_converted:
            candidate = current.apply({name: changes[name] for name in touched})
            for name in touched:
                if getattr(candidate, name) != getattr(current, name):
                    raise ValidationError(
                        "a converted signal keeps its conversion; edit its links instead",
                        field=name,
                    )
        elif changes.get("status") in (SignalStatus.CONVERTED, SignalStatus.CONVERTED.value):
            raise ValidationError(
                "signals become converted only through conversion", field="status"
            )

    def _check_references(
        self, entity: Entity, refs: Mapping[str, tuple[EntityKind, str | None, bool]]
    ) -> None:
        for name, (parent_kind, parent_id, required) in refs.items():
            if not parent_id:
                if required:
                    raise ValidationError(f"a {parent_kind.value} is required", field=name)
                continue
            if self._store.get(parent_kind, parent_id) is None:
                raise ValidationError(
                    f"{parent_kind.value} '{parent_id}' does not exist", field=name
                )

    @staticmethod
    def _defaults(kind: EntityKind, category: RestaurantCategory | None) -> dict[str, Any]:
        if kind is EntityKind.NEW_RESTAURANT:
            return {"title": _RESTAURANT_TITLES[category or RestaurantCategory.NEW]}
        return dict(_DEFAULT_SEEDS.get(kind, {}))
