"""
Configuration validation against declarative rules.

Every rule is evaluated independently and all violations are collected
into one ValidationError; a pass never stops at the first failure.
"""

from typing import Dict, Any, List, Optional, Callable, Mapping
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
import functools
import logging
import re

from .coercion import Kind, coerce, render
from .schemas import schema_keys
from ..core.exceptions import FieldError, SchemaError, TypeMismatchError, ValidationError

logger = logging.getLogger(__name__)

class ValidationType(Enum):
    """Types of validation rules."""
    REQUIRED = "required"
    RANGE = "range"
    PATTERN = "pattern"
    CUSTOM = "custom"

@dataclass
class Rule:
    """Constraints for one configuration key."""
    required: bool = False
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[str] = None
    custom: Optional[Callable[[Any], Any]] = None

class BaseValidator(ABC):
    """Abstract base validator."""

    @abstractmethod
    def applies(self, rule: Rule) -> bool:
        """Whether the rule sets this validator's constraint."""
        pass

    @abstractmethod
    def validate(self, value: Any, rule: Rule) -> List[str]:
        """Validate a present value; return failure messages."""
        pass

class RangeValidator(BaseValidator):
    """Validator for numeric bounds."""

    def applies(self, rule: Rule) -> bool:
        return rule.minimum is not None or rule.maximum is not None

    def validate(self, value: Any, rule: Rule) -> List[str]:
        try:
            number = coerce(value, Kind.FLOAT)
        except TypeMismatchError as e:
            return [f"cannot convert to number: {e.message}"]

        errors = []
        if rule.minimum is not None and number < rule.minimum:
            errors.append(f"value {_number(number)} is less than min {_number(rule.minimum)}")
        if rule.maximum is not None and number > rule.maximum:
            errors.append(f"value {_number(number)} is greater than max {_number(rule.maximum)}")
        return errors

class PatternValidator(BaseValidator):
    """Validator for regex patterns on the value's string rendering."""

    def applies(self, rule: Rule) -> bool:
        return bool(rule.pattern)

    def validate(self, value: Any, rule: Rule) -> List[str]:
        try:
            compiled = _compile(rule.pattern)
        except re.error as e:
            return [f"invalid pattern: {e}"]

        text = render(value)
        if not compiled.search(text):
            return [f"value {text!r} does not match pattern {rule.pattern!r}"]
        return []

class CustomValidator(BaseValidator):
    """Validator for custom predicate functions."""

    def applies(self, rule: Rule) -> bool:
        return rule.custom is not None

    def validate(self, value: Any, rule: Rule) -> List[str]:
        try:
            result = rule.custom(value)
        except Exception as e:
            return [str(e) or e.__class__.__name__]

        if result is None or result is True:
            return []
        elif result is False:
            return ["custom validation failed"]
        elif isinstance(result, str):
            return [result]
        else:
            return ["custom validation returned invalid result"]

@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> "re.Pattern":
    return re.compile(pattern)

def _number(value: float) -> str:
    """Render bounds and values without a spurious trailing .0"""
    return str(int(value)) if value.is_integer() else str(value)

class ConfigValidator:
    """Main configuration validator."""

    def __init__(self):
        self.validators: Dict[ValidationType, BaseValidator] = {
            ValidationType.RANGE: RangeValidator(),
            ValidationType.PATTERN: PatternValidator(),
            ValidationType.CUSTOM: CustomValidator()
        }

    def check(self, snapshot: Mapping[str, Any], rules: Mapping[str, Rule]) -> List[FieldError]:
        """Evaluate every rule and return all violations in evaluation order."""
        errors: List[FieldError] = []

        for key, rule in rules.items():
            if key not in snapshot:
                if rule.required:
                    errors.append(FieldError(field=key, message=ValidationType.REQUIRED.value))
                continue

            value = snapshot[key]
            for validator in self.validators.values():
                if validator.applies(rule):
                    errors.extend(FieldError(field=key, message=message)
                                  for message in validator.validate(value, rule))

        return errors

    def validate(self, snapshot: Mapping[str, Any], rules: Mapping[str, Rule]) -> None:
        """
        Validate and raise if any rule is violated.

        Raises:
            ValidationError: Holding every FieldError found
        """
        errors = self.check(snapshot, rules)
        if errors:
            logger.debug(f"Validation found {len(errors)} violation(s) across {len(rules)} rule(s)")
            raise ValidationError(errors)

    def is_valid(self, snapshot: Mapping[str, Any], rules: Mapping[str, Rule]) -> bool:
        """Check if configuration is valid."""
        return len(self.check(snapshot, rules)) == 0


def parse_rule_expression(expression: str) -> Rule:
    """
    Parse a comma-separated rule expression.

    Grammar: ``required``, ``min=N``, ``max=N``, ``pattern=P`` (``regex=P``
    is accepted as an alias). Patterns cannot contain commas.

    Raises:
        SchemaError: On unknown tokens or non-numeric bounds
    """
    rule = Rule()
    for part in expression.split(","):
        part = part.strip()
        if not part:
            continue

        name, _, argument = part.partition("=")
        name = name.strip()
        if name == "required" and not argument:
            rule.required = True
        elif name in ("min", "max"):
            try:
                bound = float(argument)
            except ValueError as e:
                raise SchemaError(f"invalid {name} bound in rule {expression!r}", cause=e) from e
            if name == "min":
                rule.minimum = bound
            else:
                rule.maximum = bound
        elif name in ("pattern", "regex"):
            rule.pattern = argument
        else:
            raise SchemaError(f"unknown rule {part!r} in {expression!r}")
    return rule


def rules_from_schema(schema: type) -> Dict[str, Rule]:
    """Derive rules from the ``validate`` metadata of a dataclass schema."""
    return {
        key: parse_rule_expression(spec.validate)
        for key, spec in schema_keys(schema).items()
        if spec.validate
    }


_default_validator = ConfigValidator()


def validate(snapshot: Mapping[str, Any], rules: Mapping[str, Rule]) -> None:
    """Validate a snapshot against rules; see ConfigValidator.validate."""
    _default_validator.validate(snapshot, rules)


def validate_schema(snapshot: Mapping[str, Any], schema: Any) -> None:
    """
    Validate a snapshot against rules declared on a dataclass schema.

    Args:
        snapshot: Flat configuration mapping
        schema: Dataclass type or instance
    """
    schema_type = schema if isinstance(schema, type) else type(schema)
    validate(snapshot, rules_from_schema(schema_type))
