"""
Control Validators

Each validator is a frozen dataclass called with a control value. It returns
None when the value passes, or an error mapping keyed by the validator kind:

    MaxLengthValidator(5)("too long")
    # {"maxlength": {"requiredLength": 5, "actualLength": 8}}

Only ``required`` rejects empty values (None, "", empty collections); every
other validator lets an empty value through so optional fields stay valid.
"""

import re
from dataclasses import dataclass, field
from typing import Any, ClassVar, Iterable

from fieldstudio.models.contracts.fields import FieldDefinition
from fieldstudio.models.enums import FieldType

# local@domain.tld, with at least one dot in the domain part
EMAIL_PATTERN = re.compile(
    r"[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+"
    r"@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+"
)

# ^(https?://)?([\da-z.-]+)\.([a-z.]{2,6})([/\w .-]*)*/?$ with the nested
# repetition collapsed; it accepts the same strings without the backtracking.
URL_PATTERN = re.compile(r"(https?://)?([\da-z.-]+)\.([a-z.]{2,6})[/\w .-]*/?", re.ASCII)


def is_empty(value: Any) -> bool:
    """True for None and zero-length strings/collections."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, set, dict)):
        return len(value) == 0
    return False


def _to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class Validator:
    """Base validator. Subclasses set ``kind`` and implement ``check``."""

    kind: ClassVar[str] = ""

    def __call__(self, value: Any) -> dict[str, Any] | None:
        if is_empty(value):
            return None
        return self.check(value)

    def check(self, value: Any) -> dict[str, Any] | None:
        raise NotImplementedError


@dataclass(frozen=True)
class RequiredValidator(Validator):
    kind: ClassVar[str] = "required"

    def __call__(self, value: Any) -> dict[str, Any] | None:
        return {self.kind: True} if is_empty(value) else None


@dataclass(frozen=True)
class MinLengthValidator(Validator):
    min_length: int
    kind: ClassVar[str] = "minlength"

    def check(self, value: Any) -> dict[str, Any] | None:
        if not hasattr(value, "__len__"):
            return None
        if len(value) < self.min_length:
            return {self.kind: {"requiredLength": self.min_length, "actualLength": len(value)}}
        return None


@dataclass(frozen=True)
class MaxLengthValidator(Validator):
    max_length: int
    kind: ClassVar[str] = "maxlength"

    def check(self, value: Any) -> dict[str, Any] | None:
        if not hasattr(value, "__len__"):
            return None
        if len(value) > self.max_length:
            return {self.kind: {"requiredLength": self.max_length, "actualLength": len(value)}}
        return None


@dataclass(frozen=True)
class PatternValidator(Validator):
    """Whole-value regular expression match."""
    pattern: str
    regex: re.Pattern = field(init=False, repr=False, compare=False)
    kind: ClassVar[str] = "pattern"

    def __post_init__(self):
        object.__setattr__(self, "regex", re.compile(self.pattern))

    def check(self, value: Any) -> dict[str, Any] | None:
        if self.regex.fullmatch(str(value)):
            return None
        return {self.kind: {"requiredPattern": self.pattern, "actualValue": value}}


@dataclass(frozen=True)
class EmailValidator(Validator):
    kind: ClassVar[str] = "email"

    def check(self, value: Any) -> dict[str, Any] | None:
        return None if EMAIL_PATTERN.fullmatch(str(value)) else {self.kind: True}


@dataclass(frozen=True)
class MinValidator(Validator):
    """Inclusive lower bound. Non-numeric values are left to other validators."""
    min: float
    kind: ClassVar[str] = "min"

    def check(self, value: Any) -> dict[str, Any] | None:
        number = _to_number(value)
        if number is not None and number < self.min:
            return {self.kind: {"min": self.min, "actual": value}}
        return None


@dataclass(frozen=True)
class MaxValidator(Validator):
    """Inclusive upper bound. Non-numeric values are left to other validators."""
    max: float
    kind: ClassVar[str] = "max"

    def check(self, value: Any) -> dict[str, Any] | None:
        number = _to_number(value)
        if number is not None and number > self.max:
            return {self.kind: {"max": self.max, "actual": value}}
        return None


@dataclass(frozen=True)
class UrlValidator(Validator):
    """URL with optional http(s) scheme."""
    kind: ClassVar[str] = "url"

    def check(self, value: Any) -> dict[str, Any] | None:
        if URL_PATTERN.fullmatch(str(value)):
            return None
        return {self.kind: {"value": value}}


def build_validators(field_def: FieldDefinition) -> list[Validator]:
    """
    Assemble the validators for a single-valued field.

    Args:
        field_def: Field whose validation rules and type drive the list

    Returns:
        Validators in evaluation order
    """
    rules = field_def.validation
    validators: list[Validator] = []

    if rules.required:
        validators.append(RequiredValidator())
    if rules.min_length is not None:
        validators.append(MinLengthValidator(rules.min_length))
    if rules.max_length is not None:
        validators.append(MaxLengthValidator(rules.max_length))
    if rules.pattern:
        validators.append(PatternValidator(rules.pattern))
    if rules.email or field_def.type == FieldType.EMAIL:
        validators.append(EmailValidator())
    if rules.min is not None:
        validators.append(MinValidator(rules.min))
    if rules.max is not None:
        validators.append(MaxValidator(rules.max))
    if rules.url or field_def.type == FieldType.URL:
        validators.append(UrlValidator())

    return validators


def run_validators(validators: Iterable[Validator], value: Any) -> dict[str, Any]:
    """Run every validator and merge their errors. Empty dict means valid."""
    errors: dict[str, Any] = {}
    for validator in validators:
        result = validator(value)
        if result:
            errors.update(result)
    return errors
