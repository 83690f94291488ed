from typing import Any, Optional

from config import settings
from library_admin.models import Status
from library_admin.forms.controls import FormControl, FormGroup, TypeaheadControl
from library_admin.forms.entity_form import EntityFormController
from library_admin.forms.typeahead import ReferenceListLoader, TypeaheadFilterPipeline
from library_admin.forms.validators import Validators
from library_admin.services.alert_service import AlertService
from library_admin.services.catalog_service import (
    AuthorService, BookService, CategoryService, PublisherService,
)
from library_admin.services.http_client import ApiClient
from library_admin.services.navigation import Navigator


def _to_status(value: Any) -> Status:
    return Status(value) if value else Status.ENABLED


class BookFormController(EntityFormController):
    """Add/edit form for books with author, category and publisher typeaheads."""

    noun = "Book"
    return_url = settings.books_url

    def __init__(self, book_service: BookService, author_loader: ReferenceListLoader,
                 category_loader: ReferenceListLoader, publisher_loader: ReferenceListLoader,
                 alert_service: AlertService, navigator: Navigator,
                 id: Optional[str] = None, return_url: Optional[str] = None) -> None:
        super().__init__(
            book_service,
            {"author": author_loader, "category": category_loader, "publisher": publisher_loader},
            alert_service,
            navigator,
            id=id,
            return_url=return_url,
        )

    def build_form(self) -> FormGroup:
        entity_validators = [Validators.required, Validators.selected_entity]
        return FormGroup({
            "name": FormControl("name", "", [Validators.required]),
            "author": TypeaheadControl("author", validators=entity_validators),
            "category": TypeaheadControl("category", validators=entity_validators),
            "publisher": TypeaheadControl("publisher", validators=entity_validators),
            "description": FormControl("description", ""),
            "access_book_num": FormControl("access_book_num", ""),
            "status": FormControl("status", Status.ENABLED, [Validators.required], coerce=_to_status),
        })

    @property
    def authors(self) -> TypeaheadFilterPipeline:
        return self.pipelines["author"]

    @property
    def categories(self) -> TypeaheadFilterPipeline:
        return self.pipelines["category"]

    @property
    def publishers(self) -> TypeaheadFilterPipeline:
        return self.pipelines["publisher"]

    @classmethod
    def from_client(cls, client: ApiClient, alert_service: AlertService, navigator: Navigator,
                    id: Optional[str] = None) -> "BookFormController":
        return cls(
            BookService(client),
            ReferenceListLoader(AuthorService(client)),
            ReferenceListLoader(CategoryService(client)),
            ReferenceListLoader(PublisherService(client)),
            alert_service,
            navigator,
            id=id,
        )
