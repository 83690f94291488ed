"""
Form controller for catalog records with reference-entity fields.

The controller owns the FormGroup and one TypeaheadFilterPipeline per
reference field. ``initialize()`` starts every pipeline before anything is
awaited, then loads the reference lists and (in edit mode) the record
concurrently. Reconciliation patches the nested entity fields as
SelectedEntity values first and the scalar fields afterwards.

Submission moves through IDLE -> SUBMITTING -> SUCCESS, or back to IDLE with an
error alert when the API call fails.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from library_admin.models import field_value_to_payload, to_field_value
from library_admin.forms.controls import FormGroup
from library_admin.forms.typeahead import (
    ReferenceListLoader, ReferenceListLoadError, TypeaheadFilterPipeline,
)
from library_admin.services.alert_service import AlertService
from library_admin.services.catalog_service import EntityService
from library_admin.services.http_client import CatalogAPIError
from library_admin.services.navigation import Navigator

logger = logging.getLogger(__name__)


class FormMode(str, Enum):
    CREATE = "create"
    EDIT = "edit"


class SubmitState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCESS = "success"


class RecordFetchError(Exception):
    """The record being edited could not be fetched."""

    def __init__(self, noun: str, id: str, cause: Exception):
        self.id = id
        self.cause = cause
        super().__init__(f"Could not load {noun.lower()} {id}: {cause}")


class EntityFormController:
    noun = "Record"
    return_url = "/"

    def __init__(self, service: EntityService, loaders: Mapping[str, ReferenceListLoader],
                 alert_service: AlertService, navigator: Navigator,
                 id: Optional[str] = None, return_url: Optional[str] = None) -> None:
        self.service = service
        self.alert_service = alert_service
        self.navigator = navigator
        self.id = id
        self.mode = FormMode.EDIT if id else FormMode.CREATE
        if return_url:
            self.return_url = return_url

        self.form = self.build_form()
        self.pipelines: Dict[str, TypeaheadFilterPipeline] = {
            field: TypeaheadFilterPipeline(self.form[field], loader)
            for field, loader in loaders.items()
        }

        self.title = f"Edit {self.noun}" if self.mode == FormMode.EDIT else f"Add {self.noun}"
        self.loading = False
        self.submitted = False
        self.submit_state = SubmitState.IDLE
        self.record: Any = None
        self.record_error: Optional[RecordFetchError] = None
        self.reference_errors: Dict[str, ReferenceListLoadError] = {}
        self._initialized = False
        self._closed = False

    def build_form(self) -> FormGroup:
        raise NotImplementedError

    @property
    def entity_fields(self) -> Tuple[str, ...]:
        return tuple(self.pipelines)

    @property
    def submitting(self) -> bool:
        return self.submit_state == SubmitState.SUBMITTING

    # ------------------------- Initialization ------------------------- #
    async def initialize(self) -> None:
        if self._initialized:
            return
        self._initialized = True

        # Subscribe before the first await so no value change is missed
        for pipeline in self.pipelines.values():
            pipeline.start()

        jobs = [self._load_reference(field, pipeline) for field, pipeline in self.pipelines.items()]
        if self.mode == FormMode.EDIT:
            self.loading = True
            jobs.append(self._load_record())
        await asyncio.gather(*jobs)

    async def _load_reference(self, field: str, pipeline: TypeaheadFilterPipeline) -> None:
        try:
            await pipeline.load()
        except ReferenceListLoadError as e:
            self.reference_errors[field] = e
            self.alert_service.error(str(e))

    async def _load_record(self) -> None:
        self.loading = True
        try:
            try:
                record = await self.service.get_by_id(self.id)
                self.reconcile(record)
            except (CatalogAPIError, ValueError, KeyError, TypeError, AttributeError) as e:
                self.record_error = RecordFetchError(self.noun, self.id, e)
                logger.error(str(self.record_error))
                self.alert_service.error(str(self.record_error))
        finally:
            self.loading = False

    def reconcile(self, record: Any) -> None:
        """Merge a fetched record into the form without losing entity types."""
        self.record = record
        values = record.to_dict() if hasattr(record, "to_dict") else dict(record)

        for field in self.entity_fields:
            self.form[field].patch_value(to_field_value(values.get(field)))

        self.form.patch_value({k: v for k, v in values.items() if k not in self.entity_fields})

    # ------------------------- Submission ------------------------- #
    def payload(self) -> Dict[str, Any]:
        data = {}
        for name, value in self.form.value.items():
            if name in self.entity_fields:
                data[name] = field_value_to_payload(value)
            elif isinstance(value, Enum):
                data[name] = value.value
            else:
                data[name] = value
        return data

    async def on_submit(self) -> bool:
        if self.submit_state != SubmitState.IDLE:
            logger.debug(f"Ignoring submit while {self.submit_state.value}")
            return False

        self.submitted = True
        self.alert_service.clear()

        if self.form.invalid:
            logger.debug(f"{self.noun} form invalid: {self.form.errors}")
            return False

        self.submit_state = SubmitState.SUBMITTING
        try:
            await self._save()
        except CatalogAPIError as e:
            self.alert_service.error(e.message)
            self.submit_state = SubmitState.IDLE
            return False

        self.submit_state = SubmitState.SUCCESS
        self.alert_service.success(f"{self.noun} saved", keep_after_route_change=True)
        self.navigator.navigate_by_url(self.return_url)
        return True

    async def _save(self) -> Any:
        # Create or update based on the id given at construction
        if self.mode == FormMode.EDIT:
            return await self.service.update(self.id, self.payload())
        return await self.service.create(self.payload())

    # ------------------------- Teardown ------------------------- #
    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        for pipeline in self.pipelines.values():
            pipeline.stop()
        self.form.close()

    async def __aenter__(self):
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.close()
