from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, File, Form, Query
from fastapi import UploadFile as IncomingFile

from qbadmin.api.dependencies import Console, provide_page_size, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, read_upload, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.application.screens.banks import BanksScreen

router = APIRouter(prefix="/console/banks", tags=["question-banks"])


def _screen(console: Console, *, subject_id: int | None = None, page: int = 1, limit: int = 10) -> BanksScreen:
    return BanksScreen(
        banks=console.banks,
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
        page=page,
        limit=limit,
    )


async def _open_bank(console: Console, bank_id: int, subject_id: int | None, page: int, limit: int) -> BanksScreen:
    screen = _screen(console, subject_id=subject_id, page=page, limit=limit)
    await screen.list.fetch()
    bank = next((item for item in screen.list.data if item.id == bank_id), None)
    if bank is None:
        raise not_found("Question bank")
    await screen.open_chapter_stats(bank)
    return screen


@router.get("", response_model=ScreenResponse)
async def list_banks(
    subjectId: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console, subject_id=subjectId, page=page, limit=limit or default_limit)
    await screen.mount()
    view = screen.view()
    view["subjects"] = [asdict(item) for item in screen.subjects]
    view["subjectChapters"] = [asdict(item) for item in screen.subject_chapters]
    return screen_response(console, view)


@router.post("/import", response_model=ActionResponse)
async def import_bank(
    subjectId: int | None = Form(default=None),
    name: str | None = Form(default=None),
    description: str | None = Form(default=None),
    file: IncomingFile | None = File(default=None),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    form = screen.import_form("full")
    form.open_create()
    ok = await form.submit(
        {"subject_id": subjectId, "name": name, "description": description, "file": await read_upload(file)}
    )
    return form_response(console, form, ok)


@router.post("/{bank_id}/chapters/import", response_model=ActionResponse)
async def import_chapter(
    bank_id: int,
    subjectChapterId: int | None = Form(default=None),
    file: IncomingFile | None = File(default=None),
    console: Console = Depends(provide_signed_in_console),
):
    screen = _screen(console)
    form = screen.import_form("chapter")
    form.open_create()
    ok = await form.submit(
        {"bank_id": bank_id, "subject_chapter_id": subjectChapterId, "file": await read_upload(file)}
    )
    return form_response(console, form, ok)


@router.get("/{bank_id}/chapters", response_model=ActionResponse)
async def bank_chapters(
    bank_id: int,
    subjectId: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _open_bank(console, bank_id, subjectId, page, limit or default_limit)
    return action_response(console, True, data={"chapters": [asdict(item) for item in screen.chapter_stats]})


@router.delete("/{bank_id}/chapters/{chapter_id}", response_model=ActionResponse)
async def delete_bank_chapter(
    bank_id: int,
    chapter_id: int,
    subjectId: int | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int | None = Query(default=None, ge=1, le=200),
    default_limit: int = Depends(provide_page_size),
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _open_bank(console, bank_id, subjectId, page, limit or default_limit)
    chapter = next((item for item in screen.chapter_stats if item.id == chapter_id), None)
    if chapter is None:
        raise not_found("Chapter")
    ok = await screen.delete_chapter(chapter)
    return action_response(
        console,
        ok,
        data={
            "chapters": [asdict(item) for item in screen.chapter_stats],
            "summary": screen.summary(),
        },
    )


@router.get("/{bank_id}/subject-chapters", response_model=ActionResponse)
async def bank_subject_chapters(bank_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = _screen(console)
    ok = await screen.open_chapter_import(bank_id)
    return action_response(
        console,
        ok,
        data={
            "form": screen.chapter_import.snapshot(),
            "subjectChapters": [asdict(item) for item in screen.subject_chapters],
        },
    )
