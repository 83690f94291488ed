"""
Demo catalog API.

An in-memory implementation of the REST contract the admin client consumes,
for local development (``main.py serve``) and integration tests:

    GET  /{Kind}                 all records
    GET  /{Kind}/getAllEnabled   enabled records only
    GET  /{Kind}/{id}            one record or 404
    POST /{Kind}                 create
    PUT  /{Kind}/{id}            partial update

Books store their author, category and publisher as nested objects.
"""

import itertools
import logging
from datetime import datetime, timezone
from threading import RLock
from typing import Any, Dict, List, Optional, Union

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from config import settings
from library_admin.models import REFERENCE_KINDS, EntityKind, Status

logger = logging.getLogger(__name__)


# --- Request models ---
class ReferenceIn(BaseModel):
    name: str = Field(min_length=1)
    status: Status = Status.ENABLED


class ReferenceUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    status: Optional[Status] = None


class EntityRef(BaseModel):
    id: str
    name: str = ""
    status: Status = Status.ENABLED


class BookIn(BaseModel):
    name: str = Field(min_length=1)
    author: EntityRef
    category: EntityRef
    publisher: EntityRef
    description: Optional[str] = ""
    access_book_num: Union[int, str, None] = ""
    status: Status = Status.ENABLED


class BookUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    author: Optional[EntityRef] = None
    category: Optional[EntityRef] = None
    publisher: Optional[EntityRef] = None
    description: Optional[str] = None
    access_book_num: Union[int, str, None] = None
    status: Optional[Status] = None


class BorrowRecordIn(BaseModel):
    model_config = ConfigDict(extra="allow")

    book: EntityRef
    borrower: str = Field(min_length=1)
    status: Status = Status.ENABLED


class BorrowRecordUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    book: Optional[EntityRef] = None
    borrower: Optional[str] = Field(default=None, min_length=1)
    status: Optional[Status] = None


CREATE_MODELS = {
    EntityKind.AUTHOR: ReferenceIn,
    EntityKind.CATEGORY: ReferenceIn,
    EntityKind.PUBLISHER: ReferenceIn,
    EntityKind.BOOK: BookIn,
    EntityKind.BORROW_RECORD: BorrowRecordIn,
}

UPDATE_MODELS = {
    EntityKind.AUTHOR: ReferenceUpdate,
    EntityKind.CATEGORY: ReferenceUpdate,
    EntityKind.PUBLISHER: ReferenceUpdate,
    EntityKind.BOOK: BookUpdate,
    EntityKind.BORROW_RECORD: BorrowRecordUpdate,
}

# Nested reference fields per kind and the kind they point at
NESTED_FIELDS = {
    EntityKind.BOOK: {
        "author": EntityKind.AUTHOR,
        "category": EntityKind.CATEGORY,
        "publisher": EntityKind.PUBLISHER,
    },
    EntityKind.BORROW_RECORD: {"book": EntityKind.BOOK},
}


class CatalogStore:
    """Thread-safe in-memory tables, one per entity kind, in insertion order."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._tables: Dict[EntityKind, Dict[str, Dict[str, Any]]] = {kind: {} for kind in EntityKind}
        self._ids = itertools.count(1)

    def list(self, kind: EntityKind, enabled_only: bool = False) -> List[Dict[str, Any]]:
        with self._lock:
            rows = list(self._tables[kind].values())
        if enabled_only:
            rows = [r for r in rows if r.get("status") == Status.ENABLED.value]
        return [dict(r) for r in rows]

    def get(self, kind: EntityKind, id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._tables[kind].get(id)
            return dict(row) if row else None

    def create(self, kind: EntityKind, data: Dict[str, Any]) -> Dict[str, Any]:
        with self._lock:
            id = f"{kind.value[0].lower()}{next(self._ids)}"
            row = {"id": id, **data, "created_at": datetime.now(timezone.utc).isoformat()}
            self._tables[kind][id] = row
            return dict(row)

    def update(self, kind: EntityKind, id: str, data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            row = self._tables[kind].get(id)
            if row is None:
                return None
            row.update(data)
            return dict(row)


def seed_store(store: CatalogStore) -> CatalogStore:
    """Fill a store with a small sample catalog."""
    authors = [store.create(EntityKind.AUTHOR, {"name": n, "status": "enabled"})
               for n in ("Isaac Asimov", "J.R.R. Tolkien", "Leo Tolstoy")]
    store.create(EntityKind.AUTHOR, {"name": "Anonymous", "status": "disabled"})
    categories = [store.create(EntityKind.CATEGORY, {"name": n, "status": "enabled"})
                  for n in ("Fantasy", "Science Fiction", "Classics")]
    publishers = [store.create(EntityKind.PUBLISHER, {"name": n, "status": "enabled"})
                  for n in ("Allen & Unwin", "Penguin Classics", "Doubleday")]
    store.create(EntityKind.BOOK, {
        "name": "The Hobbit",
        "author": _ref(authors[1]),
        "category": _ref(categories[0]),
        "publisher": _ref(publishers[0]),
        "description": "There and back again.",
        "access_book_num": 3,
        "status": "enabled",
    })
    return store


def _ref(row: Dict[str, Any]) -> Dict[str, Any]:
    return {"id": row["id"], "name": row.get("name", ""), "status": row.get("status", "enabled")}


def create_app(store: Optional[CatalogStore] = None) -> FastAPI:
    store = store if store is not None else seed_store(CatalogStore())
    app = FastAPI(title=f"{settings.app_name} demo API", version=settings.app_version)
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def validate(models: Dict[EntityKind, type], kind: EntityKind, payload: Dict[str, Any],
                 partial: bool) -> Dict[str, Any]:
        try:
            model = models[kind].model_validate(payload)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise HTTPException(status_code=422, detail=f"{field}: {first.get('msg')}")
        data = model.model_dump(mode="json", exclude_unset=partial)
        # Nested references are stored as the referenced row, not as sent
        for field, target in NESTED_FIELDS.get(kind, {}).items():
            if data.get(field) is None:
                continue
            row = store.get(target, data[field]["id"])
            if row is None:
                raise HTTPException(status_code=400, detail=f"Unknown {target.value} {data[field]['id']}")
            data[field] = _ref(row)
        return data

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "counts": {kind.value: len(store.list(kind)) for kind in EntityKind},
        }

    @app.get("/{kind}")
    async def list_records(kind: EntityKind):
        return store.list(kind)

    @app.get(f"/{{kind}}/{settings.enabled_list_path}")
    async def list_enabled(kind: EntityKind):
        if kind not in REFERENCE_KINDS:
            raise HTTPException(status_code=404, detail=f"{kind.value} has no enabled list")
        return store.list(kind, enabled_only=True)

    @app.get("/{kind}/{id}")
    async def get_record(kind: EntityKind, id: str):
        row = store.get(kind, id)
        if row is None:
            raise HTTPException(status_code=404, detail=f"{kind.value} {id} not found")
        return row

    @app.post("/{kind}")
    async def create_record(kind: EntityKind, payload: Dict[str, Any] = Body(...)):
        data = validate(CREATE_MODELS, kind, payload, partial=False)
        row = store.create(kind, data)
        logger.info(f"Created {kind.value} {row['id']}")
        return row

    @app.put("/{kind}/{id}")
    async def update_record(kind: EntityKind, id: str, payload: Dict[str, Any] = Body(...)):
        if store.get(kind, id) is None:
            raise HTTPException(status_code=404, detail=f"{kind.value} {id} not found")
        data = validate(UPDATE_MODELS, kind, payload, partial=True)
        return store.update(kind, id, data)

    return app


app = create_app()
