import asyncio

import httpx

from qbadmin.application.screens.banks import BanksScreen
from qbadmin.application.screens.essays import EssaysScreen
from qbadmin.application.screens.files import FilesScreen
from qbadmin.application.screens.images import ImagesScreen, delete_prompt
from qbadmin.application.screens.providers import ProvidersScreen, obfuscate_api_key
from qbadmin.application.screens.subject_chapters import SubjectChaptersScreen
from qbadmin.application.screens.subjects import SubjectsScreen
from qbadmin.application.services.essays import EssayAdminService
from qbadmin.application.services.files import FilesService
from qbadmin.application.services.question_banks import QuestionBanksService
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.application.services.system import SystemService
from qbadmin.domain.models import BankImageRecord, UploadFile
from qbadmin.infra.notify.interaction import StaticConfirm
from tests.fake_backend import FakeBackend, fail, json_body, make_gateway, ok


def _file(file_id, status="failed", chapters=0):
    return {"id": file_id, "name": f"doc-{file_id}", "parse_status": status, "chapter_count": chapters, "file_size": 2048}


def _run(backend, build, steps, *, confirm=True):
    async def scenario():
        gateway, notifier, navigator, _ = make_gateway(backend)
        confirmer = StaticConfirm(confirm)
        async with gateway:
            screen = build(gateway, notifier, confirmer)
            result = await steps(screen)
        return screen, result, notifier, confirmer

    return asyncio.run(scenario())


def _files_screen(**kwargs):
    def build(gateway, notifier, confirmer):
        return FilesScreen(files=FilesService(gateway=gateway), notifier=notifier, confirmer=confirmer, **kwargs)

    return build


def test_failed_filter_second_page_then_limit_change():
    backend = FakeBackend().on(
        "GET",
        "/admin/markdown-files",
        lambda request: ok(
            {
                "files": [_file(i) for i in range(11, 16)] if request.url.params["page"] == "2" else [_file(1)],
                "total": 15,
            }
        ),
    )

    async def steps(screen):
        await screen.mount()
        rows_page_two = [row["id"] for row in screen.rows()]
        screen.list.set_limit(20)
        await screen.list.fetch()
        return rows_page_two

    screen, rows_page_two, _, _ = _run(backend, _files_screen(status="failed", page=2, limit=10), steps)

    first, second = backend.calls("GET", "/admin/markdown-files")
    assert dict(first.url.params) == {"status": "failed", "page": "2", "limit": "10"}
    assert dict(second.url.params) == {"status": "failed", "page": "1", "limit": "20"}
    assert rows_page_two == [11, 12, 13, 14, 15]
    assert screen.list.total == 15
    assert screen.list.page == 1


def test_file_summary_counts_loaded_page():
    backend = FakeBackend().on(
        "GET",
        "/admin/markdown-files",
        ok(
            {
                "files": [_file(1, "completed", 3), _file(2, "parsing"), _file(3, "pending", 1), _file(4, "failed")],
                "total": 40,
            }
        ),
    )

    async def steps(screen):
        await screen.mount()
        return screen.view()

    _, view, _, _ = _run(backend, _files_screen(), steps)
    assert view["summary"] == {"completed": 1, "pending": 2, "chapters": 4}
    assert view["rows"][0]["index"] == 1
    assert view["rows"][0]["statusTag"] == "success"
    assert view["rows"][1]["canParse"] is False
    assert view["rows"][0]["sizeLabel"] == "2.0 KB"


def test_unconfirmed_delete_issues_no_backend_mutation():
    backend = FakeBackend().on("GET", "/admin/markdown-files", ok({"files": [_file(1)], "total": 1}))

    async def steps(screen):
        await screen.mount()
        return await screen.delete(screen.find(1))

    _, deleted, _, confirmer = _run(backend, _files_screen(), steps, confirm=False)
    assert deleted is False
    assert backend.mutations() == []
    assert confirmer.prompts == [{"title": "Confirm deletion", "content": "Delete document “doc-1”?"}]


def test_parse_reports_chapter_count_and_refetches():
    backend = (
        FakeBackend()
        .on("GET", "/admin/markdown-files", ok({"files": [_file(1, "pending")], "total": 1}))
        .on("POST", "/admin/markdown-files/1/parse", ok({"chapter_count": 6}))
    )

    async def steps(screen):
        await screen.mount()
        return await screen.parse(screen.find(1))

    _, parsed, notifier, _ = _run(backend, _files_screen(), steps)
    assert parsed is True
    assert notifier.contents("success") == ["Parse completed, 6 chapters"]
    assert len(backend.calls("GET", "/admin/markdown-files")) == 2


def test_parse_is_skipped_while_parsing():
    backend = FakeBackend().on("GET", "/admin/markdown-files", ok({"files": [_file(1, "parsing")], "total": 1}))

    async def steps(screen):
        await screen.mount()
        return await screen.parse(screen.find(1))

    _, parsed, _, _ = _run(backend, _files_screen(), steps)
    assert parsed is False
    assert backend.mutations() == []


def test_upload_form_creates_then_refetches_in_order():
    backend = (
        FakeBackend()
        .on("POST", "/admin/markdown-files", ok({"id": 9, "name": "Guide"}))
        .on("GET", "/admin/markdown-files", ok({"files": [_file(9, "pending")], "total": 1}))
    )

    async def steps(screen):
        screen.upload_form.open_create()
        return await screen.upload_form.submit({"name": "Guide", "file": UploadFile("guide.md", b"# Guide")})

    screen, uploaded, _, _ = _run(backend, _files_screen(), steps)
    assert uploaded is True
    assert [request.method for request in backend.requests] == ["POST", "GET"]
    assert b'name="name"' in backend.requests[0].content
    assert screen.upload_form.open is False


def test_bank_summary_uses_server_total():
    banks = [
        {"id": 1, "name": "A", "total_questions": 30, "chapter_count": 3, "parse_status": "completed"},
        {"id": 2, "name": "B", "total_questions": 12, "chapter_count": 2, "parse_status": "failed"},
    ]
    backend = (
        FakeBackend()
        .on("GET", "/subjects/admin", ok({"subjects": [{"id": 5, "name": "Math"}]}))
        .on("GET", "/admin/question-banks", ok({"list": banks, "pagination": {"total": 27}}))
    )

    def build(gateway, notifier, confirmer):
        return BanksScreen(
            banks=QuestionBanksService(gateway=gateway),
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
        )

    async def steps(screen):
        await screen.mount()
        return screen.summary()

    _, summary, _, _ = _run(backend, build, steps)
    assert summary == {"total_banks": 27, "page_questions": 42, "page_chapters": 5, "completed": 1, "failed": 1}


def test_bank_chapter_delete_reloads_chapter_stats():
    chapters = [{"id": 11, "bank_id": 1, "chapter_name": "Ch1", "question_count": 4}]
    backend = (
        FakeBackend()
        .on("GET", "/admin/question-banks", ok({"list": [{"id": 1, "name": "A"}], "total": 1}))
        .on("GET", "/question-banks/1/chapters", lambda request: ok({"chapters": list(chapters)}))
        .on("DELETE", "/question-banks/1/chapters/11", lambda request: chapters.clear() or ok())
    )

    def build(gateway, notifier, confirmer):
        return BanksScreen(
            banks=QuestionBanksService(gateway=gateway),
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
        )

    async def steps(screen):
        await screen.list.fetch()
        await screen.open_chapter_stats(screen.list.data[0])
        return await screen.delete_chapter(screen.chapter_stats[0])

    screen, deleted, notifier, _ = _run(backend, build, steps)
    assert deleted is True
    assert screen.chapter_stats == []
    assert notifier.contents("success") == ["Chapter deleted"]
    assert len(backend.calls("GET", "/admin/question-banks")) == 2


def _images_backend(images):
    return (
        FakeBackend()
        .on("GET", "/question-banks/3/images", ok({"images": images}))
        .on("DELETE", "/question-banks/3/images/a b.png", ok({"deleted": True, "usedInQuestions": []}))
    )


def _images_screen(gateway, notifier, confirmer):
    return ImagesScreen(
        banks=QuestionBanksService(gateway=gateway),
        subjects=SubjectsService(gateway=gateway),
        notifier=notifier,
        confirmer=confirmer,
        bank_id=3,
        limit=2,
    )


def test_images_are_paged_client_side_with_stats():
    images = [
        {"filename": "a b.png", "size": 100, "used_in_questions": [1, 2]},
        {"filename": "c.png", "size": 50, "used_in_questions": []},
        {"filename": "d.png", "size": 25, "used_in_questions": [7]},
    ]

    async def steps(screen):
        await screen.list.fetch()
        screen.list.set_page(2)
        return screen.view()

    _, view, _, _ = _run(_images_backend(images), _images_screen, steps)
    assert view["total"] == 3
    assert [row["filename"] for row in view["rows"]] == ["d.png"]
    assert view["summary"]["references"] == 3
    assert view["summary"]["referenced_images"] == 2
    assert view["summary"]["total_size"] == 175


def test_image_delete_prompt_mentions_references_and_force_flag():
    images = [{"filename": "a b.png", "size": 100, "used_in_questions": [1, 2]}]

    async def steps(screen):
        await screen.list.fetch()
        return await screen.delete(screen.find("a b.png"), force=True)

    _, deleted, _, confirmer = _run(_images_backend(images), _images_screen, steps)
    assert deleted is True
    assert confirmer.prompts[0]["title"] == "Confirm forced deletion"
    assert "referenced by 2 questions" in confirmer.prompts[0]["content"]


def test_image_delete_sends_force_query():
    images = [{"filename": "a b.png", "size": 100, "used_in_questions": [4]}]
    backend = _images_backend(images)

    async def steps(screen):
        await screen.list.fetch()
        return await screen.delete(screen.find("a b.png"), force=True)

    _run(backend, _images_screen, steps)
    (request,) = backend.calls("DELETE")
    assert request.url.params["force"] == "1"
    assert request.url.raw_path.endswith(b"/images/a%20b.png?force=1")


def test_delete_prompt_without_references():
    title, content = delete_prompt(BankImageRecord(filename="x.png"), force=False)
    assert title == "Confirm deletion"
    assert content == "Deletion cannot be undone. Continue?"


def test_image_upload_warns_about_skipped_files():
    backend = (
        FakeBackend()
        .on("POST", "/question-banks/3/images", ok({"uploaded": [], "skipped": [{"filename": "a.png"}], "total_uploaded": 0}))
        .on("GET", "/question-banks/3/images", ok({"images": []}))
    )

    async def steps(screen):
        return await screen.upload([UploadFile("a.png", b"\x89PNG")], overwrite=True)

    _, uploaded, notifier, _ = _run(backend, _images_screen, steps)
    assert uploaded is True
    assert notifier.contents("warning") == ["Upload finished, skipped 1 images with existing names"]
    assert backend.calls("POST")[0].url.params["overwrite"] == "1"


def test_image_upload_without_files_is_rejected_locally():
    backend = FakeBackend()

    async def steps(screen):
        return await screen.upload([])

    _, uploaded, notifier, _ = _run(backend, _images_screen, steps)
    assert uploaded is False
    assert backend.requests == []
    assert notifier.contents("warning") == ["Please select images first"]


def test_image_rename_toasts_updated_question_count():
    backend = (
        FakeBackend()
        .on("GET", "/question-banks/3/images", ok({"images": [{"filename": "old.png"}]}))
        .on(
            "PATCH",
            "/question-banks/3/images/old.png",
            ok({"oldFilename": "old.png", "newFilename": "new.png", "updatedQuestions": 3}),
        )
    )

    async def steps(screen):
        await screen.list.fetch()
        screen.open_rename(screen.find("old.png"))
        return await screen.rename_form.submit({"new_filename": "new.png"})

    _, renamed, notifier, _ = _run(backend, _images_screen, steps)
    assert renamed is True
    assert notifier.contents("success") == ["Renamed, 3 questions updated"]
    assert json_body(backend.calls("PATCH")[0]) == {"newFilename": "new.png", "overwrite": False}


def test_obfuscate_api_key():
    assert obfuscate_api_key("") == "-"
    assert obfuscate_api_key("abcd") == "abcd"
    assert obfuscate_api_key("abcdefgh") == "****efgh"
    assert obfuscate_api_key("sk-1234567890") == "sk-1****7890"


def _providers_screen(gateway, notifier, confirmer):
    return ProvidersScreen(system=SystemService(gateway=gateway), notifier=notifier, confirmer=confirmer)


def test_provider_toggle_patches_row_after_server_confirms():
    backend = (
        FakeBackend()
        .on("GET", "/system/providers", ok([{"id": 2, "name": "OpenAI", "endpoint": "https://x", "status": 1}]))
        .on("PUT", "/system/providers/2", ok({"id": 2, "name": "OpenAI", "endpoint": "https://x", "status": 0}))
    )

    async def steps(screen):
        await screen.mount()
        return await screen.set_enabled(screen.find(2), False)

    screen, toggled, notifier, _ = _run(backend, _providers_screen, steps)
    assert toggled is True
    assert screen.find(2).status == 0
    assert len(backend.calls("GET", "/system/providers")) == 1
    assert json_body(backend.calls("PUT")[0]) == {"status": 0}
    assert notifier.contents("success") == ["Provider disabled"]


def test_provider_toggle_failure_leaves_row_untouched():
    backend = (
        FakeBackend()
        .on("GET", "/system/providers", ok([{"id": 2, "name": "OpenAI", "endpoint": "https://x", "status": 1}]))
        .on("PUT", "/system/providers/2", httpx.Response(500))
    )

    async def steps(screen):
        await screen.mount()
        return await screen.set_enabled(screen.find(2), False)

    screen, toggled, notifier, _ = _run(backend, _providers_screen, steps)
    assert toggled is False
    assert screen.find(2).status == 1
    assert notifier.contents("error") == ["Internal server error"]


def test_settings_editor_loads_and_validates_json():
    backend = (
        FakeBackend()
        .on("GET", "/system/knowledge-format", ok({"type": "knowledge_format", "payload": {"levels": 2}}))
        .on("POST", "/system/knowledge-format", lambda request: ok({"type": "knowledge_format", "payload": json_body(request)}))
    )

    async def steps(screen):
        await screen.settings.open("knowledge")
        loaded = screen.settings.form.draft["content"]
        rejected = await screen.settings.save("{broken")
        saved = await screen.settings.save('{"levels": 3}')
        return loaded, rejected, saved

    screen, (loaded, rejected, saved), notifier, _ = _run(backend, _providers_screen, steps)
    assert '"levels": 2' in loaded
    assert rejected is False
    assert saved is True
    assert len(backend.calls("POST")) == 1
    assert json_body(backend.calls("POST")[0]) == {"levels": 3}
    assert notifier.contents("success") == ["Configuration saved"]


def test_subject_toggle_requires_confirmation():
    backend = (
        FakeBackend()
        .on("GET", "/subjects/admin", ok({"subjects": [{"id": 1, "name": "Math", "status": 1}, {"id": 2, "name": "Art", "status": 0}]}))
        .on("PUT", "/subjects/1", ok({"id": 1, "name": "Math", "status": 0}))
    )

    def build(gateway, notifier, confirmer):
        return SubjectsScreen(subjects=SubjectsService(gateway=gateway), notifier=notifier, confirmer=confirmer)

    async def steps(screen):
        await screen.mount()
        summary = dict(screen.list.summary)
        toggled = await screen.toggle_status(screen.find(1))
        return summary, toggled

    _, (summary, toggled), _, confirmer = _run(backend, build, steps)
    assert summary == {"total": 2, "enabled": 1, "disabled": 1}
    assert toggled is True
    assert confirmer.prompts[0] == {"title": "Confirm disable", "content": "Disable subject “Math”?"}
    assert json_body(backend.calls("PUT")[0]) == {"status": 0}


def test_chapter_sync_reports_created_and_bound_counts():
    backend = (
        FakeBackend()
        .on("GET", "/subjects/4/chapters", ok({"chapters": [{"id": 1, "subject_id": 4, "chapter_name": "A", "question_count": 5}]}))
        .on("POST", "/subjects/4/chapters/sync", ok({"createdChapters": 2, "boundChapters": 7}))
    )

    def build(gateway, notifier, confirmer):
        return SubjectChaptersScreen(
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
            subject_id=4,
        )

    async def steps(screen):
        return await screen.sync()

    screen, synced, notifier, _ = _run(backend, build, steps)
    assert synced is True
    assert notifier.contents("success") == ["Sync completed: 2 created, 7 bound"]
    assert screen.list.summary == {"total": 1, "enabled": 1, "disabled": 0, "questions": 5}


def test_chapter_sync_without_subject_warns():
    backend = FakeBackend()

    def build(gateway, notifier, confirmer):
        return SubjectChaptersScreen(subjects=SubjectsService(gateway=gateway), notifier=notifier, confirmer=confirmer)

    _, synced, notifier, _ = _run(backend, build, lambda screen: screen.sync())
    assert synced is False
    assert notifier.contents("warning") == ["Please select a subject first"]
    assert backend.requests == []


def test_alias_without_subject_is_a_field_error():
    backend = FakeBackend()

    def build(gateway, notifier, confirmer):
        return SubjectChaptersScreen(subjects=SubjectsService(gateway=gateway), notifier=notifier, confirmer=confirmer)

    async def steps(screen):
        screen.alias_form.open_create()
        return await screen.alias_form.submit({"alias_name": "Ch. 1", "subject_chapter_id": 1})

    screen, created, _, _ = _run(backend, build, steps)
    assert created is False
    assert screen.alias_form.field_errors == {"subject_id": "Please select a subject first"}
    assert screen.alias_form.submitting is False
    assert backend.requests == []


def test_essay_summary_mixes_server_total_and_page_counts():
    essays = [
        {"id": 1, "title": "E1", "org_id": 1, "subject_id": 1, "subject_chapter_id": 1, "status": 1},
        {"id": 2, "title": "E2", "org_id": 1, "subject_id": 1, "subject_chapter_id": 1, "status": 0},
    ]
    backend = (
        FakeBackend()
        .on("GET", "/subjects/admin", ok({"subjects": []}))
        .on("GET", "/admin/essay-orgs", ok({"orgs": [{"id": 1, "name": "Org"}, {"id": 2, "name": "Other"}]}))
        .on("GET", "/admin/essays", ok({"list": essays, "total": 31}))
    )

    def build(gateway, notifier, confirmer):
        return EssaysScreen(
            essays=EssayAdminService(gateway=gateway),
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
            filters={"keyword": "war", "status": 1},
        )

    async def steps(screen):
        await screen.mount()
        return screen.summary()

    _, summary, _, _ = _run(backend, build, steps)
    assert summary == {"total": 31, "enabled": 1, "disabled": 1, "org_count": 2}
    params = backend.calls("GET", "/admin/essays")[0].url.params
    assert params["keyword"] == "war"
    assert params["status"] == "1"


def test_essay_create_without_file_is_rejected_locally():
    backend = FakeBackend()

    def build(gateway, notifier, confirmer):
        return EssaysScreen(
            essays=EssayAdminService(gateway=gateway),
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
        )

    async def steps(screen):
        screen.open_create_essay()
        return await screen.essay_form.submit({"title": "T", "org_id": 1, "subject_id": 1, "subject_chapter_id": 1})

    screen, created, _, _ = _run(backend, build, steps)
    assert created is False
    assert backend.requests == []
    assert screen.essay_form.field_errors == {"file": "Please select a Markdown file"}


def test_backend_business_failure_on_delete_is_toasted_once():
    backend = (
        FakeBackend()
        .on("GET", "/system/providers", ok([{"id": 2, "name": "OpenAI", "endpoint": "https://x"}]))
        .on("DELETE", "/system/providers/2", fail(409, "Provider in use"))
    )

    async def steps(screen):
        await screen.mount()
        return await screen.delete(screen.find(2))

    _, deleted, notifier, _ = _run(backend, _providers_screen, steps)
    assert deleted is False
    assert notifier.contents("error") == ["Provider in use"]


def test_chapter_import_form_targets_bank_subject_chapters():
    backend = FakeBackend().on(
        "GET",
        "/admin/question-banks/7/subject-chapters",
        ok({"chapters": [{"id": 3, "subject_id": 2, "chapter_name": "Limits"}]}),
    )

    def build(gateway, notifier, confirmer):
        return BanksScreen(
            banks=QuestionBanksService(gateway=gateway),
            subjects=SubjectsService(gateway=gateway),
            notifier=notifier,
            confirmer=confirmer,
        )

    screen, opened, _, _ = _run(backend, build, lambda screen: screen.open_chapter_import(7))
    assert opened is True
    assert screen.chapter_import.open is True
    assert screen.chapter_import.draft["bank_id"] == 7
    assert [item.chapter_name for item in screen.subject_chapters] == ["Limits"]
