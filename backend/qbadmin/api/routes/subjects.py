from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from qbadmin.api.dependencies import Console, provide_signed_in_console
from qbadmin.api.responses import action_response, form_response, not_found, screen_response
from qbadmin.api.schemas.console import ActionResponse, ScreenResponse
from qbadmin.api.schemas.requests import ChapterAliasRequest, SubjectChapterRequest, SubjectRequest
from qbadmin.application.screens.subject_chapters import SubjectChaptersScreen
from qbadmin.application.screens.subjects import SubjectsScreen

router = APIRouter(prefix="/console/subjects", tags=["subjects"])


async def _subjects(console: Console) -> SubjectsScreen:
    screen = SubjectsScreen(subjects=console.subjects, notifier=console.notifier, confirmer=console.confirmer)
    await screen.mount()
    return screen


async def _chapters(console: Console, subject_id: int) -> SubjectChaptersScreen:
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    await screen.list.fetch()
    return screen


@router.get("", response_model=ScreenResponse)
async def list_subjects(console: Console = Depends(provide_signed_in_console)):
    screen = await _subjects(console)
    return screen_response(console, screen.view())


@router.post("", response_model=ActionResponse)
async def create_subject(payload: SubjectRequest, console: Console = Depends(provide_signed_in_console)):
    screen = SubjectsScreen(subjects=console.subjects, notifier=console.notifier, confirmer=console.confirmer)
    screen.form.open_create()
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.put("/{subject_id}", response_model=ActionResponse)
async def update_subject(
    subject_id: int,
    payload: SubjectRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _subjects(console)
    record = screen.find(subject_id)
    if record is None:
        raise not_found("Subject")
    screen.form.open_edit(record)
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.post("/{subject_id}/toggle", response_model=ActionResponse)
async def toggle_subject(subject_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = await _subjects(console)
    record = screen.find(subject_id)
    if record is None:
        raise not_found("Subject")
    ok = await screen.toggle_status(record)
    return action_response(console, ok)


@router.get("/{subject_id}/chapters", response_model=ScreenResponse)
async def list_subject_chapters(subject_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = await _chapters(console, subject_id)
    return screen_response(console, screen.view())


@router.post("/{subject_id}/chapters", response_model=ActionResponse)
async def create_subject_chapter(
    subject_id: int,
    payload: SubjectChapterRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    screen.form.open_create()
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.put("/{subject_id}/chapters/{chapter_id}", response_model=ActionResponse)
async def update_subject_chapter(
    subject_id: int,
    chapter_id: int,
    payload: SubjectChapterRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _chapters(console, subject_id)
    record = screen.find(chapter_id)
    if record is None:
        raise not_found("Chapter")
    screen.form.open_edit(record)
    ok = await screen.form.submit(payload.model_dump())
    return form_response(console, screen.form, ok)


@router.post("/{subject_id}/chapters/sync", response_model=ActionResponse)
async def sync_subject_chapters(subject_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    ok = await screen.sync()
    return action_response(console, ok, data={"summary": screen.list.summary})


@router.post("/{subject_id}/chapters/{chapter_id}/toggle", response_model=ActionResponse)
async def toggle_subject_chapter(
    subject_id: int,
    chapter_id: int,
    console: Console = Depends(provide_signed_in_console),
):
    screen = await _chapters(console, subject_id)
    record = screen.find(chapter_id)
    if record is None:
        raise not_found("Chapter")
    ok = await screen.toggle_status(record)
    return action_response(console, ok)


@router.get("/{subject_id}/aliases", response_model=ActionResponse)
async def list_chapter_aliases(subject_id: int, console: Console = Depends(provide_signed_in_console)):
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    ok = await screen.load_aliases()
    return action_response(console, ok, data={"aliases": [asdict(item) for item in screen.aliases]})


@router.post("/{subject_id}/aliases", response_model=ActionResponse)
async def create_chapter_alias(
    subject_id: int,
    payload: ChapterAliasRequest,
    console: Console = Depends(provide_signed_in_console),
):
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    screen.open_aliases()
    ok = await screen.alias_form.submit(payload.model_dump())
    response = form_response(console, screen.alias_form, ok)
    response.data = {"aliases": [asdict(item) for item in screen.aliases]}
    return response


@router.delete("/{subject_id}/aliases/{alias_id}", response_model=ActionResponse)
async def delete_chapter_alias(
    subject_id: int,
    alias_id: int,
    console: Console = Depends(provide_signed_in_console),
):
    screen = SubjectChaptersScreen(
        subjects=console.subjects,
        notifier=console.notifier,
        confirmer=console.confirmer,
        subject_id=subject_id,
    )
    await screen.load_aliases()
    alias = next((item for item in screen.aliases if item.id == alias_id), None)
    if alias is None:
        raise not_found("Alias")
    ok = await screen.delete_alias(alias)
    return action_response(console, ok, data={"aliases": [asdict(item) for item in screen.aliases]})
