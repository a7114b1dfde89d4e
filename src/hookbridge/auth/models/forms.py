"""Declarative auth forms.

An adapter that needs extra input before authorization can start (a
tenant, a site, a sandbox switch) describes it with a ``FormDescriptor``.
The host renders it; the collected values come back as
``AuthorizationRequest.fields``.
"""

from __future__ import annotations

from typing import Annotated, Any, Literal, Mapping, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from hookbridge.errors import FormValidationError


class FormModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with the host's camelCase field names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class SelectOption(FormModel):
    label: str
    value: str


class TextField(FormModel):
    """Single-line text input."""

    type: Literal["text"] = "text"
    label: str
    key: str
    is_required: bool = False
    placeholder: str | None = None
    description: str | None = None


class PasswordField(FormModel):
    """Secret text input. Hosts must not echo the value back."""

    type: Literal["password"] = "password"
    label: str
    key: str
    is_required: bool = False
    placeholder: str | None = None
    description: str | None = None


class SelectField(FormModel):
    """Single choice from a fixed option list."""

    type: Literal["select"] = "select"
    label: str
    key: str
    is_required: bool = False
    options: list[SelectOption] = Field(min_length=1)
    description: str | None = None

    def allows(self, value: str) -> bool:
        return any(option.value == value for option in self.options)


FormField = Annotated[
    Union[TextField, PasswordField, SelectField], Field(discriminator="type")
]


class FormDescriptor(FormModel):
    fields: list[FormField] = Field(default_factory=list)

    def validate_values(self, values: Mapping[str, str]) -> None:
        """Check collected values against the form.

        Raises:
            FormValidationError: If a required field is empty or a select
                value is not one of its options. ``errors`` maps each bad
                key to a reason.
        """
        errors: dict[str, str] = {}
        for form_field in self.fields:
            value = values.get(form_field.key)
            if not value:
                if form_field.is_required:
                    errors[form_field.key] = "required"
                continue
            if isinstance(form_field, SelectField) and not form_field.allows(value):
                errors[form_field.key] = f"invalid option: {value}"

        if errors:
            details = ", ".join(f"{key} ({reason})" for key, reason in errors.items())
            raise FormValidationError(f"Invalid auth form values: {details}", errors)
