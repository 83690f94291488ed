from __future__ import annotations

from typing import Any, Callable, Dict, Iterable, Mapping, Optional

from library_admin.models import EMPTY, to_field_value
from library_admin.stream import ValueStream

Validator = Callable[[Any], Optional[str]]


class FormControl:
    """A single form field: current value, validators and a value-change stream."""

    def __init__(self, name: str, initial: Any = "", validators: Iterable[Validator] = (),
                 coerce: Optional[Callable[[Any], Any]] = None) -> None:
        self.name = name
        self._coerce = coerce or (lambda value: value)
        self.initial = self._coerce(initial)
        self._value = self.initial
        self.validators = list(validators)
        self.value_changes = ValueStream(name)

    @property
    def value(self) -> Any:
        return self._value

    def set_value(self, value: Any, emit: bool = True) -> None:
        self._value = self._coerce(value)
        if emit and not self.value_changes.closed:
            self.value_changes.emit(self._value)

    def patch_value(self, value: Any, emit: bool = True) -> None:
        self.set_value(value, emit=emit)

    def reset(self) -> None:
        self.set_value(self.initial)

    @property
    def errors(self) -> Dict[str, bool]:
        errors = {}
        for validator in self.validators:
            key = validator(self._value)
            if key:
                errors[key] = True
        return errors

    @property
    def valid(self) -> bool:
        return not self.errors

    @property
    def invalid(self) -> bool:
        return not self.valid

    def close(self) -> None:
        self.value_changes.close()


class TypeaheadControl(FormControl):
    """Control whose value is always a FieldValue (RawText, SelectedEntity or EMPTY)."""

    def __init__(self, name: str, initial: Any = EMPTY, validators: Iterable[Validator] = ()) -> None:
        super().__init__(name, initial, validators, coerce=to_field_value)


class FormGroup:
    def __init__(self, controls: Mapping[str, FormControl]) -> None:
        self.controls: Dict[str, FormControl] = dict(controls)

    def get(self, name: str) -> Optional[FormControl]:
        return self.controls.get(name)

    def __getitem__(self, name: str) -> FormControl:
        return self.controls[name]

    @property
    def value(self) -> Dict[str, Any]:
        return {name: control.value for name, control in self.controls.items()}

    def patch_value(self, values: Mapping[str, Any]) -> None:
        """Set the given fields; unknown keys are ignored."""
        for name, value in values.items():
            control = self.controls.get(name)
            if control is not None:
                control.patch_value(value)

    @property
    def errors(self) -> Dict[str, Dict[str, bool]]:
        return {name: control.errors for name, control in self.controls.items() if control.errors}

    @property
    def valid(self) -> bool:
        return all(control.valid for control in self.controls.values())

    @property
    def invalid(self) -> bool:
        return not self.valid

    def close(self) -> None:
        for control in self.controls.values():
            control.close()
