"""
Settings Schema System.

This module provides field declaration and validation for plugin settings.

Key features:
- Type-safe field definitions with constraints
- Validation of values against schema
- Support for basic types (int, float, str, bool, list, dict)
"""

from dataclasses import dataclass
from typing import Any


class SchemaError(Exception):
    """Base exception for schema-related errors."""

    pass


class ValidationError(SchemaError):
    """Raised when value validation fails."""

    pass


@dataclass
class SettingField:
    """
    Represents a plugin setting with type and constraints.

    Attributes:
        type_: The expected type of the field value
        default: Default value for the field
        description: Human-readable description
        min: Minimum value (for numbers) or minimum length (for strings/lists)
        max: Maximum value (for numbers) or maximum length (for strings/lists)
        choices: List of allowed values (optional)
        required: Whether an empty value fails validation
    """

    type_: type
    default: Any
    description: str = ""
    min: Any = None
    max: Any = None
    choices: list[Any] | None = None
    required: bool = False

    def __post_init__(self):
        """Validate field definition."""
        if self.default is not None and not isinstance(self.default, self.type_):
            raise SchemaError(
                f"Default value {self.default!r} does not match type {self.type_.__name__}"
            )

        if (self.min is not None or self.max is not None) and self.type_ not in (
            int,
            float,
            str,
            list,
        ):
            raise SchemaError(
                f"min/max constraints only supported for int, float, str, list. Got {self.type_.__name__}"
            )

        if self.choices is not None:
            if not isinstance(self.choices, list):
                raise SchemaError("choices must be a list")
            for choice in self.choices:
                if not isinstance(choice, self.type_):
                    raise SchemaError(
                        f"Choice {choice!r} does not match type {self.type_.__name__}"
                    )
            if self.default is not None and self.default not in self.choices:
                raise SchemaError(
                    f"Default value {self.default!r} not in choices {self.choices}"
                )

    def validate(self, value: Any) -> None:
        """
        Validate a value against this field's constraints.

        Args:
            value: The value to validate

        Raises:
            ValidationError: If validation fails
        """
        if value is None or value == "":
            if self.required:
                raise ValidationError("Value cannot be blank")
            return

        # bool is an int subclass; don't let True pass as a number
        if not isinstance(value, self.type_) or (
            isinstance(value, bool) and self.type_ is not bool
        ):
            raise ValidationError(
                f"Expected type {self.type_.__name__}, got {type(value).__name__}"
            )

        if self.choices is not None and value not in self.choices:
            raise ValidationError(
                f"Value {value!r} not in allowed choices {self.choices}"
            )

        if self.type_ in (int, float):
            if self.min is not None and value < self.min:
                raise ValidationError(f"Value {value} is less than minimum {self.min}")
            if self.max is not None and value > self.max:
                raise ValidationError(
                    f"Value {value} is greater than maximum {self.max}"
                )

        if self.type_ in (str, list):
            kind = "String" if self.type_ is str else "List"
            if self.min is not None and len(value) < self.min:
                raise ValidationError(
                    f"{kind} length {len(value)} is less than minimum {self.min}"
                )
            if self.max is not None and len(value) > self.max:
                raise ValidationError(
                    f"{kind} length {len(value)} is greater than maximum {self.max}"
                )


def validate_settings(
    settings: dict[str, Any], schema: dict[str, SettingField]
) -> dict[str, str]:
    """
    Validate a settings dictionary against a schema.

    Args:
        settings: The settings dictionary to validate
        schema: The schema dictionary (field_name -> SettingField)

    Returns:
        Mapping of field name to error message (empty when valid)
    """
    errors = {}
    for field_name, field in schema.items():
        try:
            field.validate(settings.get(field_name))
        except ValidationError as e:
            errors[field_name] = str(e)
    return errors


def generate_default_settings(schema: dict[str, SettingField]) -> dict[str, Any]:
    """
    Generate default settings from a schema.

    Args:
        schema: The schema dictionary (field_name -> SettingField)

    Returns:
        A dictionary with default values for all fields
    """
    return {field_name: field.default for field_name, field in schema.items()}
