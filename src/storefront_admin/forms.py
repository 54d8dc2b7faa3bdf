from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Mapping, Sequence, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from storefront_sdk.exceptions import ApiError
from storefront_sdk.models import (
    CampaignStatus,
    CustomerSegment,
    CustomerStatus,
    MovementType,
    ProductStatus,
    PromotionType,
    PublishStatus,
)

from .errors import ErrorPresenter, PresentedError
from .listing.controller import MutationResult

EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
SLUG_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
PROMO_CODE_REGEX = re.compile(r"^[A-Z0-9_-]{3,32}$")


class FormStatus(str, Enum):
    IDLE = "idle"
    DIRTY = "dirty"
    VALID = "valid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


class FormModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ProductForm(FormModel):
    name: str = Field(min_length=1, max_length=200)
    description: str | None = None
    sku: str | None = Field(default=None, max_length=64)
    category: str | None = None
    price: float = Field(ge=0)
    sale_price: float | None = Field(default=None, ge=0)
    quantity: int = Field(default=0, ge=0)
    status: ProductStatus = ProductStatus.DRAFT

    @field_validator("sale_price")
    @classmethod
    def _sale_below_price(cls, value: float | None, info: ValidationInfo) -> float | None:
        price = info.data.get("price")
        if value is not None and price is not None and value >= price:
            raise ValueError("Sale price must be lower than the regular price")
        return value


class CustomerForm(FormModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: str
    phone: str | None = None
    status: CustomerStatus = CustomerStatus.ACTIVE
    segment: CustomerSegment = CustomerSegment.NEW
    tags: list[str] = Field(default_factory=list)

    @field_validator("email")
    @classmethod
    def _email_format(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not EMAIL_REGEX.match(normalized):
            raise ValueError("Invalid email; use name@domain.com")
        return normalized


class PromotionForm(FormModel):
    code: str
    type: PromotionType = PromotionType.PERCENTAGE
    value: float = Field(gt=0)
    min_purchase: float | None = Field(default=None, ge=0)
    max_discount: float | None = Field(default=None, ge=0)
    start_date: datetime | None = None
    end_date: datetime | None = None
    usage_limit: int | None = Field(default=None, ge=1)

    @field_validator("code")
    @classmethod
    def _code_format(cls, value: str) -> str:
        normalized = value.strip().upper()
        if not PROMO_CODE_REGEX.match(normalized):
            raise ValueError("Code must be 3-32 letters, digits, '-' or '_'")
        return normalized

    @field_validator("value")
    @classmethod
    def _percentage_cap(cls, value: float, info: ValidationInfo) -> float:
        if info.data.get("type") is PromotionType.PERCENTAGE and value > 100:
            raise ValueError("Percentage discounts cannot exceed 100")
        return value

    @field_validator("end_date")
    @classmethod
    def _ends_after_start(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        start = info.data.get("start_date")
        if value is not None and start is not None and value <= start:
            raise ValueError("End date must be after the start date")
        return value


class CampaignForm(FormModel):
    name: str = Field(min_length=1, max_length=200)
    subject: str = Field(min_length=1, max_length=200)
    segment: str | None = None
    status: CampaignStatus = CampaignStatus.DRAFT
    scheduled_at: datetime | None = Field(default=None, validate_default=True)

    @field_validator("scheduled_at")
    @classmethod
    def _scheduled_needs_date(cls, value: datetime | None, info: ValidationInfo) -> datetime | None:
        if info.data.get("status") is CampaignStatus.SCHEDULED and value is None:
            raise ValueError("Scheduled campaigns need a send date")
        return value


class SeoForm(FormModel):
    title: str = Field(default="", max_length=60)
    description: str = Field(default="", max_length=160)
    keywords: list[str] = Field(default_factory=list)


class PageForm(FormModel):
    title: str = Field(min_length=1, max_length=200)
    slug: str
    status: PublishStatus = PublishStatus.DRAFT
    template: str = "default"
    content: Any = None
    seo: SeoForm = Field(default_factory=SeoForm)

    @field_validator("slug")
    @classmethod
    def _slug_format(cls, value: str) -> str:
        if not SLUG_REGEX.match(value):
            raise ValueError("Slug may only contain lowercase letters, digits and single dashes")
        return value


class StockAdjustmentForm(FormModel):
    product_id: str = Field(min_length=1)
    quantity: int
    type: MovementType = MovementType.ADJUSTMENT
    reason: str = Field(min_length=1, max_length=500)
    reference: str | None = None

    @field_validator("quantity")
    @classmethod
    def _non_zero(cls, value: int) -> int:
        if value == 0:
            raise ValueError("Quantity must not be zero")
        return value


F = TypeVar("F", bound=FormModel)


@dataclass
class FormResult(Generic[F]):
    values: dict[str, Any]
    field_errors: dict[str, str]
    model: F | None = None

    @property
    def first_invalid_field(self) -> str | None:
        return next(iter(self.field_errors), None)

    @property
    def is_valid(self) -> bool:
        return len(self.field_errors) == 0


def _clean_message(message: str) -> str:
    return message.removeprefix("Value error, ")


def pydantic_field_errors(error: PydanticValidationError) -> dict[str, str]:
    errors: dict[str, str] = {}
    for issue in error.errors():
        path = ".".join(_snake(str(part)) for part in issue["loc"]) or "form"
        errors.setdefault(path, _clean_message(issue["msg"]))
    return errors


def validate_form(form_type: type[F], values: Mapping[str, Any]) -> FormResult[F]:
    try:
        model = form_type.model_validate(dict(values))
    except PydanticValidationError as exc:
        return FormResult(values=dict(values), field_errors=pydantic_field_errors(exc))
    return FormResult(values=model.model_dump(), field_errors={}, model=model)


def map_api_validation_errors(error_details: Any) -> dict[str, str]:
    """Field errors from a server validation payload, keyed by snake_case dotted path."""
    if not error_details:
        return {}

    mapped: dict[str, str] = {}
    if isinstance(error_details, dict):
        nested = error_details.get("errors") or error_details.get("fields")
        if isinstance(nested, (dict, list)):
            return map_api_validation_errors(nested)
        for key, value in error_details.items():
            if isinstance(value, str):
                mapped[_field_path(key)] = value
            elif isinstance(value, list) and value and isinstance(value[0], str):
                mapped[_field_path(key)] = value[0]
    elif isinstance(error_details, list):
        for item in error_details:
            if not isinstance(item, dict):
                continue
            path = item.get("field") or item.get("path") or item.get("loc")
            message = item.get("message") or item.get("msg")
            if isinstance(path, list):
                path = ".".join(str(part) for part in path if part != "body")
            if path and message:
                mapped[_field_path(str(path))] = str(message)
    return mapped


def _field_path(path: str) -> str:
    return ".".join(_snake(part) for part in path.split("."))


def _snake(name: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", name).lower()


def _get_path(values: Mapping[str, Any], path: str) -> Any:
    current: Any = values
    for part in path.split("."):
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def _set_path(values: Mapping[str, Any], path: str, value: Any) -> dict[str, Any]:
    """Copy-on-write update of ``path``; the input mapping is left untouched."""
    head, _, rest = path.partition(".")
    updated = dict(values)
    if not rest:
        updated[head] = value
        return updated
    child = values.get(head)
    updated[head] = _set_path(child if isinstance(child, Mapping) else {}, rest, value)
    return updated


SaveCallback = Callable[[F], Awaitable[Any]]


@dataclass
class FormEditor(Generic[F]):
    """Editing session for one form, optionally split into tabs.

    ``tabs`` maps a tab name to the top-level fields it shows; fields not listed
    belong to the first tab.
    """

    form_type: type[F]
    initial: Mapping[str, Any] = field(default_factory=dict)
    tabs: Mapping[str, Sequence[str]] = field(default_factory=dict)
    presenter: ErrorPresenter = field(default_factory=ErrorPresenter)
    values: dict[str, Any] = field(init=False)
    field_errors: dict[str, str] = field(init=False, default_factory=dict)
    status: FormStatus = field(init=False, default=FormStatus.IDLE)
    submit_error: PresentedError | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.initial = copy.deepcopy(dict(self.initial))
        self.values = copy.deepcopy(self.initial)

    @classmethod
    def for_entity(cls, form_type: type[F], entity: BaseModel, **kwargs: Any) -> "FormEditor[F]":
        data = entity.model_dump(mode="json")
        initial = {name: data[name] for name in form_type.model_fields if name in data}
        return cls(form_type=form_type, initial=initial, **kwargs)

    @property
    def is_dirty(self) -> bool:
        return self.values != self.initial

    @property
    def dirty_fields(self) -> list[str]:
        keys = list(dict.fromkeys([*self.initial, *self.values]))
        return [key for key in keys if self.initial.get(key) != self.values.get(key)]

    def get(self, path: str) -> Any:
        return _get_path(self.values, path)

    def set(self, path: str, value: Any) -> dict[str, Any]:
        self.values = _set_path(self.values, path, value)
        self.field_errors = {key: message for key, message in self.field_errors.items() if key != path}
        self.status = FormStatus.DIRTY if self.is_dirty else FormStatus.IDLE
        return self.values

    def tab_of(self, path: str) -> str | None:
        top = path.split(".", 1)[0]
        for tab, fields in self.tabs.items():
            if top in fields:
                return tab
        return next(iter(self.tabs), None)

    def tab_errors(self) -> dict[str, int]:
        counts = {tab: 0 for tab in self.tabs}
        for path in self.field_errors:
            tab = self.tab_of(path)
            if tab is not None:
                counts[tab] += 1
        return counts

    def first_invalid_tab(self) -> str | None:
        first = next(iter(self.field_errors), None)
        return self.tab_of(first) if first else None

    def validate(self) -> FormResult[F]:
        result = validate_form(self.form_type, self.values)
        self.field_errors = dict(result.field_errors)
        self.status = FormStatus.VALID if result.is_valid else FormStatus.ERROR
        return result

    async def submit(self, save: SaveCallback[F]) -> Any:
        """Validate locally, then call ``save`` with the form model.

        Returns whatever ``save`` returned, or None when validation or the save
        failed; failures are reflected in ``field_errors``/``submit_error``.
        """
        self.submit_error = None
        result = self.validate()
        if not result.is_valid or result.model is None:
            return None
        self.status = FormStatus.SUBMITTING
        try:
            saved = await save(result.model)
        except ApiError as exc:
            self._fail(exc)
            return None
        if isinstance(saved, MutationResult) and not saved.ok:
            if saved.cause is not None:
                self._fail(saved.cause)
            else:
                self.status = FormStatus.ERROR
                self.submit_error = saved.error
            return None
        self.status = FormStatus.SUCCESS
        self.initial = copy.deepcopy(self.values)
        return saved

    def _fail(self, exc: BaseException) -> None:
        self.status = FormStatus.ERROR
        if isinstance(exc, ApiError):
            self.field_errors = map_api_validation_errors(exc.details)
        elif isinstance(exc, PydanticValidationError):
            self.field_errors = pydantic_field_errors(exc)
        self.submit_error = self.presenter.present(exc, action=f"{self.form_type.__name__}.submit")

    def reset(self) -> None:
        self.values = copy.deepcopy(self.initial)
        self.field_errors = {}
        self.status = FormStatus.IDLE
        self.submit_error = None
