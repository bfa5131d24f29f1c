from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, Query
from fastapi import UploadFile as IncomingFile

from qbadmin.api.dependencies import Console, provide_page_size, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, read_upload, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.application.screens.files import FilesScreen

router = APIRouter(prefix="/console/files", tags=["files"])


async def _mounted(
    console: Console,
    *,
    status: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> FilesScreen:
    screen = FilesScreen(
        files=console.files,
        notifier=console.notifier,
        confirmer=console.confirmer,
        status=status,
        page=page,
        limit=limit,
    )
    await screen.mount()
    return screen


@router.get("", response_model=ScreenResponse)
async def list_files(
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _mounted(console, status=status, page=page, limit=limit or default_limit)
    return screen_response(console, screen.view())


@router.post("", response_model=ActionResponse)
async def upload_file(
    name: str = Form(default=""),
    description: str | None = Form(default=None),
    file: IncomingFile | None = File(default=None),
    console: Console = Depends(provide_signed_in_console),
):
    screen = FilesScreen(files=console.files, notifier=console.notifier, confirmer=console.confirmer)
    screen.upload_form.open_create()
    ok = await screen.upload_form.submit({"name": name, "description": description, "file": await read_upload(file)})
    return form_response(console, screen.upload_form, ok)


@router.post("/{file_id}/parse", response_model=ActionResponse)
async def parse_file(
    file_id: int,
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _mounted(console, status=status, page=page, limit=limit or default_limit)
    record = screen.find(file_id)
    if record is None:
        raise not_found("Document")
    ok = await screen.parse(record)
    return action_response(console, ok)


@router.delete("/{file_id}", response_model=ActionResponse)
async def delete_file(
    file_id: int,
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _mounted(console, status=status, page=page, limit=limit or default_limit)
    record = screen.find(file_id)
    if record is None:
        raise not_found("Document")
    ok = await screen.delete(record)
    return action_response(console, ok)


@router.get("/{file_id}/chapters", response_model=ActionResponse)
async def file_chapters(
    file_id: int,
    status: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _mounted(console, status=status, page=page, limit=limit or default_limit)
    record = screen.find(file_id)
    if record is None:
        raise not_found("Document")
    ok = await screen.open_chapters(record)
    return action_response(console, ok, data={"chapters": [asdict(item) for item in screen.chapters]})
