import logging
from typing import Any, Dict, List, Optional

from config import settings
from library_admin.models import Book, EntityKind, ReferenceEntity
from library_admin.services.http_client import ApiClient, CatalogAPIError

logger = logging.getLogger(__name__)


class EntityService:
    """CRUD wrapper around the REST endpoints of one entity kind"""

    kind: EntityKind

    def __init__(self, client: ApiClient, kind: Optional[EntityKind] = None):
        self.client = client
        if kind is not None:
            self.kind = kind

    @property
    def base_path(self) -> str:
        return f"/{self.kind.value}"

    def _parse(self, data: Dict[str, Any]) -> Any:
        return data

    def _decode(self, data: Any) -> Any:
        """Parse one record; an empty or malformed body is a CatalogAPIError."""
        if data is None:
            raise CatalogAPIError(f"Empty {self.kind.value} response")
        try:
            return self._parse(data)
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Malformed {self.kind.value} response: {e!r}")
            raise CatalogAPIError(f"Malformed {self.kind.value} response: {e}") from e

    def _decode_list(self, data: Any) -> List[Any]:
        if data is None:
            return []
        if not isinstance(data, list):
            raise CatalogAPIError(f"Expected a list of {self.kind.value} records")
        return [self._decode(item) for item in data]

    async def get_all(self) -> List[Any]:
        data = await self.client.get(self.base_path)
        return self._decode_list(data)

    async def get_by_id(self, id: str) -> Any:
        data = await self.client.get(f"{self.base_path}/{id}")
        return self._decode(data)

    async def create(self, payload: Dict[str, Any]) -> Any:
        logger.info(f"Creating {self.kind.value}")
        data = await self.client.post(self.base_path, json=payload)
        return self._decode(data) if data else data

    async def update(self, id: str, params: Dict[str, Any]) -> Any:
        logger.info(f"Updating {self.kind.value} {id}")
        data = await self.client.put(f"{self.base_path}/{id}", json=params)
        return self._decode(data) if data else data


class ReferenceService(EntityService):
    """Service for lookup kinds that also expose an enabled-only list"""

    def _parse(self, data: Dict[str, Any]) -> ReferenceEntity:
        return ReferenceEntity.from_dict(data)

    async def get_all_enabled(self) -> List[ReferenceEntity]:
        data = await self.client.get(f"{self.base_path}/{settings.enabled_list_path}")
        return self._decode_list(data)


class AuthorService(ReferenceService):
    kind = EntityKind.AUTHOR


class CategoryService(ReferenceService):
    kind = EntityKind.CATEGORY


class PublisherService(ReferenceService):
    kind = EntityKind.PUBLISHER


class BookService(EntityService):
    kind = EntityKind.BOOK

    def _parse(self, data: Dict[str, Any]) -> Book:
        return Book.from_dict(data)


class BorrowRecordService(EntityService):
    kind = EntityKind.BORROW_RECORD
