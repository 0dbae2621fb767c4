"""JSON-schema validators per method name and the gate that formats their failures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from jsonschema import Draft7Validator
from jsonschema.exceptions import SchemaError
from loguru import logger


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    keyword: str
    path: str
    message: str

    def format(self) -> str:
        return f"{self.keyword}: {self.path}, {self.message}"


@dataclass(frozen=True, slots=True)
class ValidationOutcome:
    ok: bool
    message: str = ""


class MethodValidator:
    """Predicate over a payload; ``errors`` holds the failures of the last check."""

    def __init__(self, method: str, schema: Mapping[str, Any]):
        Draft7Validator.check_schema(schema)
        self.method = method
        self.schema = schema
        self._validator = Draft7Validator(schema)
        self.errors: list[ValidationIssue] = []

    def __call__(self, payload: Any) -> bool:
        failures = sorted(
            self._validator.iter_errors(payload),
            key=lambda err: [str(p) for p in err.absolute_path],
        )
        self.errors = [
            ValidationIssue(
                keyword=str(err.validator),
                path="".join(f"/{p}" for p in err.absolute_path),
                message=err.message,
            )
            for err in failures
        ]
        return not self.errors


class Validators:
    """Schema store keyed by method name."""

    def __init__(self):
        self._validators: dict[str, MethodValidator] = {}

    def add_validator(self, method: str, schema: Mapping[str, Any]) -> "Validators":
        try:
            self._validators[method] = MethodValidator(method, schema)
        except SchemaError as exc:
            raise ValueError(f"invalid schema for {method}: {exc.message}") from exc
        logger.debug("Registered validator for {}", method)
        return self

    def remove_validator(self, method: str) -> bool:
        return self._validators.pop(method, None) is not None

    def get_validator(self, method: str) -> MethodValidator | None:
        return self._validators.get(method)

    def __contains__(self, method: object) -> bool:
        return method in self._validators


def format_validation_errors(errors: list[ValidationIssue]) -> str:
    return "\n".join(issue.format() for issue in errors)


class ValidatorGate:
    """Runs the optional validator for a method; a missing validator always passes."""

    def __init__(self, validators: Validators | None = None):
        self.validators = validators or Validators()

    def check(self, method: str, payload: Any) -> ValidationOutcome:
        validator = self.validators.get_validator(method)
        if validator is None or validator(payload):
            return ValidationOutcome(ok=True)
        return ValidationOutcome(ok=False, message=format_validation_errors(validator.errors))
