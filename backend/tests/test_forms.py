import asyncio

import pytest

from qbadmin.application.drafts import (
    BankImportDraft,
    ChapterAliasDraft,
    ChapterImportDraft,
    EssayDraft,
    ImageRenameDraft,
    MarkdownUploadDraft,
    SettingDocumentDraft,
    SubjectDraft,
)
from qbadmin.application.forms import FormController, validate_draft
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import Envelope, SubjectRecord, UploadFile
from qbadmin.infra.notify.recording import RecordingNotifier


def _subject_form(notifier, calls, *, reply=None):
    async def create(draft):
        calls.append(("create", draft.payload()))
        return reply or Envelope(code=200, data={"id": 1})

    async def update(record, draft):
        calls.append(("update", record.id, draft.payload()))
        return reply or Envelope(code=200, data={"id": record.id})

    async def reload():
        calls.append(("fetch",))

    return FormController(
        schema=SubjectDraft,
        create=create,
        update=update,
        notifier=notifier,
        on_success=reload,
        defaults={"status": True, "sort_order": 0},
        to_draft=lambda record: {"name": record.name, "code": record.code, "status": record.status == 1},
    )


def test_invalid_draft_never_reaches_the_backend():
    calls = []
    notifier = RecordingNotifier()
    form = _subject_form(notifier, calls)
    form.open_create()

    assert asyncio.run(form.submit({"name": "   "})) is False
    assert calls == []
    assert form.open is True
    assert form.field_errors == {"name": "Please enter a subject name"}
    assert notifier.notices == []


def test_successful_create_closes_then_refetches():
    calls = []
    notifier = RecordingNotifier()
    form = _subject_form(notifier, calls)
    form.open_create()

    assert asyncio.run(form.submit({"name": "Physics", "code": "PHY"})) is True
    assert calls == [
        ("create", {"name": "Physics", "code": "PHY", "sort_order": 0, "status": 1}),
        ("fetch",),
    ]
    assert form.open is False
    assert form.submitting is False
    assert notifier.contents("success") == ["Created successfully"]


def test_edit_submits_update_with_record():
    calls = []
    form = _subject_form(RecordingNotifier(), calls)
    form.open_edit(SubjectRecord(id=4, name="Chemistry", code="CHE", status=0))

    assert form.draft["status"] is False
    assert asyncio.run(form.submit({"name": "Chemistry II"})) is True
    assert calls[0] == ("update", 4, {"name": "Chemistry II", "code": "CHE", "sort_order": 0, "status": 0})


def test_rejected_submit_keeps_form_open_and_skips_refetch():
    calls = []
    notifier = RecordingNotifier()
    form = _subject_form(notifier, calls, reply=Envelope(code=409, message="Duplicate subject"))
    form.open_create()

    assert asyncio.run(form.submit({"name": "Physics"})) is False
    assert [call[0] for call in calls] == ["create"]
    assert form.open is True
    assert notifier.contents("error") == ["Duplicate subject"]


def test_markdown_upload_requires_md_file():
    with pytest.raises(ValidationError) as caught:
        validate_draft(MarkdownUploadDraft, {"name": "Notes", "file": UploadFile("notes.txt", b"x")})
    assert caught.value.field_errors == {"file": "Only .md files are accepted"}

    draft = validate_draft(MarkdownUploadDraft, {"name": " Notes ", "file": UploadFile("notes.MD", b"# x")})
    assert draft.name == "Notes"


def test_essay_file_is_required_only_when_creating():
    bindings = {"title": "Essay", "org_id": 1, "subject_id": 2, "subject_chapter_id": 3}

    with pytest.raises(ValidationError) as caught:
        validate_draft(EssayDraft, bindings)
    assert "Markdown file" in caught.value.message

    assert validate_draft(EssayDraft, {**bindings, "editing": True}).file is None


def test_setting_document_must_be_json():
    with pytest.raises(ValidationError) as caught:
        validate_draft(SettingDocumentDraft, {"content": "{not json"})
    assert caught.value.field_errors == {"content": "Please enter valid JSON content"}

    assert validate_draft(SettingDocumentDraft, {"content": '{"a": [1, 2]}'}).parsed() == {"a": [1, 2]}


def test_image_rename_rejects_path_separators():
    with pytest.raises(ValidationError) as caught:
        validate_draft(ImageRenameDraft, {"new_filename": "../x.png"})
    assert caught.value.field_errors == {"new_filename": "File name must not contain path separators"}


def test_missing_bindings_are_reported_on_their_own_fields():
    calls = []
    notifier = RecordingNotifier()

    async def create(draft):
        calls.append(draft)
        return Envelope(code=200)

    form = FormController(schema=BankImportDraft, create=create, notifier=notifier)
    form.open_create()

    assert asyncio.run(form.submit({"name": "x"})) is False
    assert calls == []
    assert form.field_errors == {"subject_id": "Please select a subject", "file": "Please select a JSON file"}


def test_chapter_import_lists_every_missing_field():
    with pytest.raises(ValidationError) as caught:
        validate_draft(ChapterImportDraft, {"file": UploadFile("ch.txt", b"{}")})
    assert caught.value.field_errors == {
        "bank_id": "Please select a question bank",
        "subject_chapter_id": "Please select a subject chapter",
        "file": "Only .json files are accepted",
    }


def test_essay_bindings_and_alias_target_are_field_errors():
    with pytest.raises(ValidationError) as caught:
        validate_draft(EssayDraft, {"title": "Essay", "editing": True})
    assert caught.value.field_errors == {
        "org_id": "Please select an organisation",
        "subject_id": "Please select a subject",
        "subject_chapter_id": "Please select a chapter",
    }

    with pytest.raises(ValidationError) as caught:
        validate_draft(ChapterAliasDraft, {"alias_name": "Ch 1"})
    assert caught.value.field_errors == {"subject_chapter_id": "Please select the chapter the alias points to"}
