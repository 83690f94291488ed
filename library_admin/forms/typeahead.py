"""
Typeahead filtering for reference-entity fields (author, category, publisher).

Each field gets its own ReferenceListLoader and TypeaheadFilterPipeline. The
pipeline subscribes to the field's value stream with a seed emission, so it
has candidates before the first keystroke, and re-derives them on every value
change and once more when the reference list finishes loading.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, List, Optional, Sequence, Tuple

from library_admin.models import (
    EntityKind, FieldValue, RawText, ReferenceEntity, SelectedEntity, query_text, to_field_value,
)
from library_admin.forms.controls import FormControl
from library_admin.services.catalog_service import ReferenceService
from library_admin.services.http_client import CatalogAPIError
from library_admin.stream import Subscription, ValueStream

logger = logging.getLogger(__name__)

# Default for TypeaheadFilterPipeline.display_name: use the field's own value
_CURRENT = object()


class ReferenceListLoadError(Exception):
    """The enabled-only reference list for a field could not be fetched."""

    def __init__(self, kind: EntityKind, cause: Exception):
        self.kind = kind
        self.cause = cause
        super().__init__(f"Could not load {kind.value} list: {cause}")


class FieldState(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


def derive_candidates(value: FieldValue, reference_list: Optional[Sequence[ReferenceEntity]]) -> List[ReferenceEntity]:
    """Entities of ``reference_list`` whose name contains the value's text, case-insensitively.

    An empty query returns a copy of the whole list. An unloaded list (None)
    yields no candidates. Load order is preserved.
    """
    if reference_list is None:
        return []
    name = query_text(value)
    if not name:
        return list(reference_list)
    needle = name.lower()
    return [entity for entity in reference_list if entity.name and needle in entity.name.lower()]


def display_name(value: Any) -> str:
    """Text a host UI shows in the input box for a field value."""
    if isinstance(value, SelectedEntity):
        return value.name or ""
    if isinstance(value, ReferenceEntity):
        return value.name or ""
    if isinstance(value, RawText):
        return value.text
    return ""


class ReferenceListLoader:
    """Fetches the enabled entities of one reference kind, once per form session."""

    def __init__(self, service: ReferenceService) -> None:
        self.service = service
        self.kind = service.kind
        self.entities: Optional[Tuple[ReferenceEntity, ...]] = None
        self.error: Optional[ReferenceListLoadError] = None
        self._task: Optional[asyncio.Future] = None

    @property
    def loaded(self) -> bool:
        return self.entities is not None

    async def load(self) -> Tuple[ReferenceEntity, ...]:
        # Every caller shares the first fetch, including a failed one
        if self._task is None:
            self._task = asyncio.ensure_future(self._fetch())
        return await asyncio.shield(self._task)

    async def _fetch(self) -> Tuple[ReferenceEntity, ...]:
        try:
            fetched = list(await self.service.get_all_enabled())
            entities = tuple(entity for entity in fetched if entity.enabled)
        except (CatalogAPIError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.warning(f"{self.kind.value} list failed to load: {e!r}")
            self.error = ReferenceListLoadError(self.kind, e)
            raise self.error from e

        if len(entities) != len(fetched):
            logger.debug(f"Dropped {len(fetched) - len(entities)} disabled {self.kind.value} entries")
        self.entities = entities
        logger.info(f"Loaded {len(entities)} {self.kind.value} entries")
        return entities


class TypeaheadFilterPipeline:
    """Keeps the candidate list of one field in step with its value and reference list."""

    def __init__(self, control: FormControl, loader: ReferenceListLoader) -> None:
        self.control = control
        self.loader = loader
        self.state = FieldState.UNINITIALIZED
        self.candidates: List[ReferenceEntity] = []
        self.candidate_changes = ValueStream(f"{control.name}.candidates")
        self._subscription: Optional[Subscription] = None

    @property
    def kind(self) -> EntityKind:
        return self.loader.kind

    @property
    def reference_list(self) -> Optional[Tuple[ReferenceEntity, ...]]:
        if self.state != FieldState.READY:
            return None
        return self.loader.entities

    @property
    def started(self) -> bool:
        return self._subscription is not None and not self._subscription.closed

    def start(self) -> Subscription:
        """Subscribe to the field, seeded with its current value."""
        if self.started:
            return self._subscription
        self._subscription = self.control.value_changes.subscribe(
            self._recompute, start_with=self.control.value,
        )
        return self._subscription

    async def load(self) -> None:
        if self.state == FieldState.UNINITIALIZED:
            self.state = FieldState.LOADING
        try:
            await self.loader.load()
        except ReferenceListLoadError:
            self.state = FieldState.FAILED
            self._recompute(self.control.value)
            raise
        self.state = FieldState.READY
        self._recompute(self.control.value)

    def _recompute(self, value: FieldValue) -> None:
        self.candidates = derive_candidates(value, self.reference_list)
        if not self.candidate_changes.closed:
            self.candidate_changes.emit(self.candidates)

    def display_name(self, value: Any = _CURRENT) -> str:
        """Display text for ``value``, or for the field's current value when omitted."""
        return display_name(self.control.value if value is _CURRENT else value)

    def type_text(self, text: str) -> None:
        """Feed a keystroke-level text change into the field."""
        self.control.set_value(to_field_value(text))

    def select(self, entity: ReferenceEntity) -> None:
        """User picked ``entity`` from the candidate list."""
        self.control.set_value(SelectedEntity(entity))

    def resolve(self, text: str) -> Optional[ReferenceEntity]:
        """The entity a user would pick for ``text``: an exact name match, else the only candidate."""
        needle = text.strip().lower()
        if not needle:
            return None
        matches = derive_candidates(RawText(text.strip()), self.reference_list)
        for entity in matches:
            if entity.name.lower() == needle:
                return entity
        if len(matches) == 1:
            return matches[0]
        return None

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
        self.candidate_changes.close()
