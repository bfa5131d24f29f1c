from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Generic, TypeVar

import pydantic

from qbadmin.application.actions import report_failure
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import Envelope, UploadFile
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=pydantic.BaseModel)
R = TypeVar("R")

Message = str | Callable[[Envelope[Any]], str]


def _describe(value: Any) -> Any:
    # Upload selections are shown by name only.
    if isinstance(value, UploadFile):
        return value.filename
    if isinstance(value, list) and value and all(isinstance(item, UploadFile) for item in value):
        return [item.filename for item in value]
    return value


def validation_error_from(exc: pydantic.ValidationError) -> ValidationError:
    field_errors: dict[str, str] = {}
    for item in exc.errors():
        loc = ".".join(str(part) for part in item.get("loc") or ()) or "__root__"
        message = str(item.get("msg") or "Invalid value")
        if message.startswith("Value error, "):
            message = message[len("Value error, ") :]
        field_errors.setdefault(loc, message)
    return ValidationError(field_errors)


def validate_draft(schema: type[D], values: dict[str, Any]) -> D:
    try:
        return schema.model_validate(values)
    except pydantic.ValidationError as exc:
        raise validation_error_from(exc) from exc


class FormController(Generic[D, R]):
    """Modal/drawer form: draft state, client-side validation, submit, close."""

    def __init__(
        self,
        *,
        schema: type[D],
        create: Callable[[D], Awaitable[Envelope[Any]]],
        notifier: NotifierPort,
        update: Callable[[R, D], Awaitable[Envelope[Any]]] | None = None,
        on_success: Callable[[], Awaitable[Any]] | None = None,
        defaults: dict[str, Any] | None = None,
        to_draft: Callable[[R], dict[str, Any]] | None = None,
        create_message: Message = "Created successfully",
        update_message: Message = "Updated successfully",
        error_message: str = "Save failed",
    ):
        self.schema = schema
        self._create = create
        self._update = update
        self.notifier = notifier
        self.on_success = on_success
        self.defaults = dict(defaults or {})
        self._to_draft = to_draft
        self.create_message = create_message
        self.update_message = update_message
        self.error_message = error_message

        self.open = False
        self.submitting = False
        self.draft: dict[str, Any] = {}
        self.editing: R | None = None
        self.field_errors: dict[str, str] = {}

    def open_create(self) -> None:
        self.editing = None
        self.draft = dict(self.defaults)
        self.field_errors = {}
        self.open = True

    def open_edit(self, record: R) -> None:
        self.editing = record
        self.draft = {**self.defaults, **(self._to_draft(record) if self._to_draft else {})}
        self.field_errors = {}
        self.open = True

    def close(self) -> None:
        self.open = False
        self.editing = None
        self.draft = {}
        self.field_errors = {}

    def update_draft(self, **values: Any) -> None:
        self.draft.update(values)

    async def submit(self, values: dict[str, Any] | None = None) -> bool:
        if values:
            self.draft.update(values)
        if self.submitting:
            return False

        try:
            model = validate_draft(self.schema, self.draft)
        except ValidationError as exc:
            self.field_errors = exc.field_errors
            logger.debug("Form %s rejected locally: %s", self.schema.__name__, exc.field_errors)
            return False
        self.field_errors = {}

        editing = self.editing
        self.submitting = True
        try:
            if editing is not None and self._update is not None:
                envelope = await self._update(editing, model)
            else:
                envelope = await self._create(model)
            if not envelope.ok:
                self.notifier.error(envelope.message or self.error_message)
                return False

            message = self.update_message if editing is not None else self.create_message
            self.notifier.success(message(envelope) if callable(message) else message)
            self.close()
            if self.on_success is not None:
                await self.on_success()
            return True
        except ValidationError as exc:
            self.field_errors = exc.field_errors
            report_failure(self.notifier, exc, self.error_message)
            return False
        except Exception as exc:
            report_failure(self.notifier, exc, self.error_message)
            return False
        finally:
            self.submitting = False

    def snapshot(self) -> dict[str, Any]:
        return {
            "open": self.open,
            "submitting": self.submitting,
            "editing": self.editing is not None,
            "draft": {k: _describe(v) for k, v in self.draft.items()},
            "fieldErrors": dict(self.field_errors),
        }
