"""Pydantic v2 schemas for address operations.

Validation of address input is driven by a single field table,
``ADDRESS_FIELDS``.  Two request models are generated from it:

* ``AddressCreateRequest`` -- strict: every required field must be present
  and non-empty.
* ``AddressUpdateRequest`` -- partial: every field may be omitted, but a
  supplied field obeys the same rule as in the strict model (so a required
  field can never be patched to an empty or null value).

``validate_address`` wraps both and never raises; it returns a
``ValidationOutcome`` holding either the accepted fields or a mapping of
field name to human-readable messages.
"""

import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Annotated, Any

from email_validator import EmailNotValidError, validate_email
from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    ConfigDict,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    create_model,
)

from address_admin.core.errors import ErrorKind
from address_admin.schemas.common import PaginationMeta

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_email(value: str) -> str:
    """Accept a syntactically valid email address, unchanged (no normalization)."""
    try:
        validate_email(value, check_deliverability=False, test_environment=True)
    except EmailNotValidError:
        msg = "Invalid email address"
        raise ValueError(msg) from None
    return value


def _check_url(value: str) -> str:
    """Accept an empty string or a well-formed absolute URL, unchanged."""
    if value == "":
        return value
    try:
        _URL_ADAPTER.validate_python(value)
    except ValidationError:
        msg = "Invalid url"
        raise ValueError(msg) from None
    return value


@dataclass(frozen=True)
class FieldRule:
    """Constraints for one writable address field.

    ``max_length`` mirrors the column width of ``models.address.Address``.
    """

    label: str
    required: bool = False
    format: str | None = None
    max_length: int | None = None


ADDRESS_FIELDS: dict[str, FieldRule] = {
    "salutation": FieldRule("Salutation", max_length=50),
    "first_name": FieldRule("First name", required=True, max_length=100),
    "last_name": FieldRule("Last name", required=True, max_length=100),
    "company": FieldRule("Company", max_length=200),
    "street": FieldRule("Street", required=True, max_length=200),
    "house_number": FieldRule("House number", required=True, max_length=20),
    "postal_code": FieldRule("Postal code", required=True, max_length=20),
    "city": FieldRule("City", required=True, max_length=100),
    "country": FieldRule("Country", required=True, max_length=100),
    "phone": FieldRule("Phone", max_length=50),
    "email": FieldRule("Email", required=True, format="email", max_length=255),
    "mobile": FieldRule("Mobile", max_length=50),
    "keywords": FieldRule("Keywords"),
    "search_terms": FieldRule("Search terms"),
    "profile_image": FieldRule("Profile image", format="url"),
}

_FORMAT_CHECKS: dict[str, Any] = {"email": _check_email, "url": _check_url}
_FORMAT_MESSAGES: dict[str, str] = {"email": "Invalid email address", "url": "Invalid url"}
_EMPTY_ERROR_TYPES = frozenset({"missing", "string_too_short"})

# Unknown keys (id, created_at, framework form markers) are dropped silently.
_REQUEST_CONFIG = ConfigDict(extra="ignore")


def _annotation_for(rule: FieldRule) -> Any:
    constraints = StringConstraints(min_length=1 if rule.required else None, max_length=rule.max_length)
    if rule.format is None:
        return Annotated[str, constraints]
    return Annotated[str, constraints, AfterValidator(_FORMAT_CHECKS[rule.format])]


def _build_request_model(name: str, *, partial: bool) -> type[BaseModel]:
    fields: dict[str, Any] = {}
    for field_name, rule in ADDRESS_FIELDS.items():
        annotation = _annotation_for(rule)
        if rule.required:
            # In partial mode the None default is never validated, but an
            # explicit null still has to pass the non-null annotation.
            fields[field_name] = (annotation, None if partial else ...)
        else:
            fields[field_name] = (annotation | None, None)
    return create_model(name, __config__=_REQUEST_CONFIG, **fields)


AddressCreateRequest = _build_request_model("AddressCreateRequest", partial=False)
AddressUpdateRequest = _build_request_model("AddressUpdateRequest", partial=True)


@dataclass(frozen=True)
class ValidationOutcome:
    """Discriminated validation result: ``data`` on success, ``field_errors`` on failure."""

    data: dict[str, Any] | None = None
    field_errors: dict[str, list[str]] | None = None

    @property
    def ok(self) -> bool:
        return self.field_errors is None


def _message_for(field_name: str, error: Mapping[str, Any]) -> str:
    rule = ADDRESS_FIELDS.get(field_name)
    if rule is None:
        return str(error["msg"])
    is_empty = error["type"] in _EMPTY_ERROR_TYPES or error.get("input") in (None, "")
    if rule.required and is_empty:
        return f"{rule.label} is required"
    if error["type"] == "string_too_long":
        return f"{rule.label} must be at most {rule.max_length} characters"
    if rule.format is not None and error["type"] == "value_error":
        return _FORMAT_MESSAGES[rule.format]
    return str(error["msg"])


def _collect_field_errors(exc: ValidationError) -> dict[str, list[str]]:
    field_errors: dict[str, list[str]] = {}
    for error in exc.errors():
        field_name = str(error["loc"][0]) if error["loc"] else "__root__"
        message = _message_for(field_name, error)
        messages = field_errors.setdefault(field_name, [])
        if message not in messages:
            messages.append(message)
    return field_errors


def validate_address(raw: Any, *, partial: bool = False) -> ValidationOutcome:
    """Validate raw address input against the strict or partial rules.

    Args:
        raw: Field map as received (form fields or a JSON object).
        partial: Validate as an update (only supplied fields are checked
            and returned) instead of a create.

    Returns:
        ValidationOutcome with the accepted fields or per-field messages.
    """
    if not isinstance(raw, Mapping):
        return ValidationOutcome(field_errors={"__root__": ["Expected a mapping of field names to values"]})

    model = AddressUpdateRequest if partial else AddressCreateRequest
    try:
        parsed = model.model_validate(dict(raw))
    except ValidationError as exc:
        return ValidationOutcome(field_errors=_collect_field_errors(exc))
    return ValidationOutcome(data=parsed.model_dump(exclude_unset=partial))


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class AddressResponse(BaseModel):
    """A persisted address record."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    salutation: str | None = None
    first_name: str
    last_name: str
    company: str | None = None
    street: str
    house_number: str
    postal_code: str
    city: str
    country: str
    email: str
    phone: str | None = None
    mobile: str | None = None
    keywords: str | None = None
    search_terms: str | None = None
    profile_image: str | None = None
    created_at: datetime
    updated_at: datetime


class AddressListResult(BaseModel):
    """Envelope returned by the list operation."""

    data: list[AddressResponse] | None = None
    total: int = 0
    pagination: PaginationMeta | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None


class AddressResult(BaseModel):
    """Envelope returned by get, create and update."""

    data: AddressResponse | None = None
    error: str | None = None
    error_kind: ErrorKind | None = None
    field_errors: dict[str, list[str]] | None = None


class AddressDeleteResult(BaseModel):
    """Envelope returned by delete."""

    success: bool = False
    error: str | None = None
    error_kind: ErrorKind | None = None


class AddressExportResult(BaseModel):
    """Envelope returned by the CSV export."""

    content: str | None = None
    filename: str | None = None
    record_count: int = 0
    error: str | None = None
    error_kind: ErrorKind | None = None
