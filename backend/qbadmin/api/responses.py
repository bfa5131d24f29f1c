from __future__ import annotations

from typing import Any

from fastapi import HTTPException
from fastapi import UploadFile as IncomingFile

from qbadmin.api.dependencies import Console
from qbadmin.api.schemas.console import ActionResponse, NotificationItem, PromptItem, ScreenResponse
from qbadmin.application.forms import FormController
from qbadmin.domain.models import UploadFile

_SNAPSHOT_KEYS = {"phase", "filters", "page", "limit", "total", "loading", "refreshing", "error", "summary", "rows"}


def _envelope(console: Console) -> dict[str, Any]:
    return {
        "notifications": [
            NotificationItem(id=item.id, level=item.level, content=item.content) for item in console.notifier.notices
        ],
        "redirect": console.navigator.location,
    }


def screen_response(console: Console, view: dict[str, Any]) -> ScreenResponse:
    extras = {key: value for key, value in view.items() if key not in _SNAPSHOT_KEYS}
    return ScreenResponse(
        **{key: value for key, value in view.items() if key in _SNAPSHOT_KEYS},
        extras=extras,
        **_envelope(console),
    )


def action_response(console: Console, ok: bool, *, data: Any = None) -> ActionResponse:
    prompt = None
    if console.confirm_pending:
        last = console.confirmer.prompts[-1]
        prompt = PromptItem(title=last["title"], content=last["content"])
    return ActionResponse(
        ok=ok,
        confirmRequired=prompt is not None,
        prompt=prompt,
        data=data,
        **_envelope(console),
    )


def form_response(console: Console, form: FormController[Any, Any], ok: bool) -> ActionResponse:
    response = action_response(console, ok)
    response.fieldErrors = dict(form.field_errors)
    return response


def not_found(label: str) -> HTTPException:
    return HTTPException(status_code=404, detail=f"{label} not found")


async def read_upload(file: IncomingFile | None) -> UploadFile | None:
    if file is None or not file.filename:
        return None
    return UploadFile(filename=file.filename, content=await file.read(), content_type=file.content_type)


async def read_uploads(files: list[IncomingFile] | None) -> list[UploadFile]:
    uploads = [await read_upload(item) for item in files or []]
    return [item for item in uploads if item is not None]
