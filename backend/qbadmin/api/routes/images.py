from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, Query
from fastapi import UploadFile as IncomingFile

from qbadmin.api.dependencies import Console, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, read_uploads, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.api.schemas.requests import ImageRenameRequest
from qbadmin.application.screens.images import ImagesScreen

router = APIRouter(prefix="/console/images", tags=["images"])


def _screen(
    console: Console,
    *,
    bank_id: int | None = None,
    subject_id: int | None = None,
    page: int = 1,
    limit: int = 24,
) -> ImagesScreen:
    return ImagesScreen(
        banks=console.banks,
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
        bank_id=bank_id,
        page=page,
        limit=limit,
    )


async def _bank_images(console: Console, bank_id: int) -> ImagesScreen:
    screen = _screen(console, bank_id=bank_id)
    await screen.list.fetch()
    return screen


@router.get("", response_model=ScreenResponse)
async def list_images(
    subjectId: int | None = Query(default=None),
    bankId: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=24, ge=1, le=200),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, bank_id=bankId, subject_id=subjectId, page=page, limit=limit)
    await screen.mount()
    view = screen.view()
    view["subjects"] = [asdict(item) for item in screen.subjects]
    view["bankId"] = screen.bank_id
    return screen_response(console, view)


@router.post("/{bank_id}", response_model=ActionResponse)
async def upload_images(
    bank_id: int,
    files: list[IncomingFile] | None = File(default=None),
    overwrite: bool = Form(default=False),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, bank_id=bank_id)
    ok = await screen.upload(await read_uploads(files), overwrite=overwrite)
    return action_response(console, ok, data={"summary": screen.summary()})


@router.patch("/{bank_id}/{filename}", response_model=ActionResponse)
async def rename_image(
    bank_id: int,
    filename: str,
    payload: ImageRenameRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _bank_images(console, bank_id)
    image = screen.find(filename)
    if image is None:
        raise not_found("Image")
    screen.open_rename(image)
    ok = await screen.rename_form.submit({"new_filename": payload.newFilename, "overwrite": payload.overwrite})
    return form_response(console, screen.rename_form, ok)


@router.delete("/{bank_id}/{filename}", response_model=ActionResponse)
async def delete_image(
    bank_id: int,
    filename: str,
    force: bool = Query(default=False),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _bank_images(console, bank_id)
    image = screen.find(filename)
    if image is None:
        raise not_found("Image")
    ok = await screen.delete(image, force=force)
    return action_response(console, ok, data={"summary": screen.summary()})
