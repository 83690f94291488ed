from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class Status(str, Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"


class EntityKind(str, Enum):
    """Catalog entity kinds. The value is the REST path segment."""
    AUTHOR = "Author"
    CATEGORY = "Category"
    PUBLISHER = "Publisher"
    BOOK = "Book"
    BORROW_RECORD = "BorrowRecord"


REFERENCE_KINDS = (EntityKind.AUTHOR, EntityKind.CATEGORY, EntityKind.PUBLISHER)


@dataclass(frozen=True)
class ReferenceEntity:
    """A lookup-table item (author, category, publisher) selectable for a book field."""
    id: str
    name: str
    status: Status = Status.ENABLED

    @property
    def enabled(self) -> bool:
        return self.status == Status.ENABLED

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name, "status": self.status.value}

    @staticmethod
    def from_dict(data: dict) -> "ReferenceEntity":
        # Older records may omit status; the list endpoints only serve enabled rows anyway
        status = data.get("status") or Status.ENABLED
        return ReferenceEntity(
            id=str(data["id"]),
            name=data.get("name") or "",
            status=Status(status),
        )


# ------------------------- Field values ------------------------- #

@dataclass(frozen=True)
class RawText:
    """Text typed by the user, not yet resolved to an entity."""
    text: str


@dataclass(frozen=True)
class SelectedEntity:
    """A reference entity chosen from the candidate list."""
    entity: ReferenceEntity

    @property
    def name(self) -> str:
        return self.entity.name


@dataclass(frozen=True)
class Empty:
    pass


EMPTY = Empty()

FieldValue = Union[RawText, SelectedEntity, Empty]


def to_field_value(raw: Any) -> FieldValue:
    """Convert whatever a caller hands a typeahead field into the tagged union.

    None and "" become EMPTY, strings become RawText, entities (or their wire
    dicts) become SelectedEntity. Values that already are field values pass through.
    """
    if isinstance(raw, (RawText, SelectedEntity, Empty)):
        return raw
    if raw is None or raw == "":
        return EMPTY
    if isinstance(raw, str):
        return RawText(raw)
    if isinstance(raw, ReferenceEntity):
        return SelectedEntity(raw)
    if isinstance(raw, dict) and "id" in raw:
        return SelectedEntity(ReferenceEntity.from_dict(raw))
    raise TypeError(f"Cannot use {type(raw).__name__} as a field value")


def query_text(value: FieldValue) -> str:
    """The string a field value is filtered by."""
    if isinstance(value, RawText):
        return value.text
    if isinstance(value, SelectedEntity):
        return value.name
    return ""


def field_value_to_payload(value: FieldValue) -> Any:
    if isinstance(value, SelectedEntity):
        return value.entity.to_dict()
    if isinstance(value, RawText):
        return value.text
    return None


# ------------------------- Records ------------------------- #

class Book:
    """A book record as served by the catalog API, with nested reference entities."""

    def __init__(self, name: str, author: ReferenceEntity | None = None, category: ReferenceEntity | None = None,
                 publisher: ReferenceEntity | None = None, description: str = "",
                 access_book_num: str | int = "", status: Status = Status.ENABLED, id: str | None = None) -> None:
        self.id = id
        self.name = name
        self.author = author
        self.category = category
        self.publisher = publisher
        self.description = description or ""
        self.access_book_num = access_book_num if access_book_num is not None else ""
        self.status = status

    def __str__(self) -> str:  # pragma: no cover - string formatting trivial
        author = self.author.name if self.author else "?"
        return f"{self.name} by {author}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "author": self.author.to_dict() if self.author else None,
            "category": self.category.to_dict() if self.category else None,
            "publisher": self.publisher.to_dict() if self.publisher else None,
            "description": self.description,
            "access_book_num": self.access_book_num,
            "status": self.status.value,
        }

    @staticmethod
    def from_dict(data: dict) -> "Book":
        def nested(key: str) -> ReferenceEntity | None:
            value = data.get(key)
            return ReferenceEntity.from_dict(value) if isinstance(value, dict) else None

        return Book(
            id=str(data["id"]) if data.get("id") is not None else None,
            name=data.get("name") or "",
            author=nested("author"),
            category=nested("category"),
            publisher=nested("publisher"),
            description=data.get("description"),
            access_book_num=data.get("access_book_num"),
            status=Status(data.get("status") or Status.ENABLED),
        )
