from typing import Any, Optional

from library_admin.models import Empty, RawText


class Validators:
    """Field validators. Each returns an error key, or None when the value passes."""

    @staticmethod
    def required(value: Any) -> Optional[str]:
        if value is None or isinstance(value, Empty):
            return "required"
        if isinstance(value, str) and not value.strip():
            return "required"
        if isinstance(value, RawText) and not value.text.strip():
            return "required"
        return None

    @staticmethod
    def selected_entity(value: Any) -> Optional[str]:
        # Typed text has to be resolved to a loaded entity before it can be saved
        if isinstance(value, RawText):
            return "unresolved"
        return None

