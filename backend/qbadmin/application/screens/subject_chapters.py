from __future__ import annotations

from typing import Any

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import ChapterAliasDraft, SubjectChapterDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, row_dict, whole_list
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import (
    ENABLED,
    ChapterAliasRecord,
    Envelope,
    PageResult,
    SubjectChapterRecord,
    SubjectRecord,
)
from qbadmin.domain.status import enabled_label, enabled_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

SELECT_SUBJECT_FIRST = "Please select a subject first"


def summarize_chapters(items: list[SubjectChapterRecord]) -> dict[str, int]:
    enabled = sum(1 for item in items if item.status == ENABLED)
    return {
        "total": len(items),
        "enabled": enabled,
        "disabled": len(items) - enabled,
        "questions": sum(int(item.question_count or 0) for item in items),
    }


def chapter_label(record: SubjectChapterRecord | ChapterAliasRecord) -> str:
    return record.display_name or record.chapter_name


class SubjectChaptersScreen(Screen):
    """Standard chapters of one subject plus the aliases that map onto them."""

    def __init__(
        self,
        *,
        subjects: SubjectsService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        subject_id: int | None = None,
        page: int = 1,
        limit: int = 50,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.subjects_service = subjects
        self.list: ListStateController[SubjectChapterRecord] = ListStateController(
            self._load,
            notifier=notifier,
            filters={"subject_id": subject_id},
            page=page,
            limit=limit,
            summarize=summarize_chapters,
            error_message="Failed to load chapters",
        )
        self.form: FormController[SubjectChapterDraft, SubjectChapterRecord] = FormController(
            schema=SubjectChapterDraft,
            create=self._create,
            update=self._update,
            notifier=notifier,
            on_success=self.list.fetch,
            defaults={"status": True, "chapter_order": 0},
            to_draft=lambda record: {
                "chapter_name": record.chapter_name,
                "display_name": record.display_name or "",
                "chapter_order": record.chapter_order,
                "status": record.status == ENABLED,
            },
        )
        self.alias_form: FormController[ChapterAliasDraft, ChapterAliasRecord] = FormController(
            schema=ChapterAliasDraft,
            create=self._create_alias,
            notifier=notifier,
            on_success=self.load_aliases,
            create_message="Alias added",
            error_message="Failed to add alias",
        )

        self.subjects: list[SubjectRecord] = []
        self.aliases: list[ChapterAliasRecord] = []
        self.aliases_loading = False

    @property
    def subject_id(self) -> int | None:
        return self.list.filters.get("subject_id")

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[SubjectChapterRecord]]:
        subject_id = params.get("subject_id")
        if not subject_id:
            return Envelope(code=200, data=PageResult(items=[], total=0, page=params["page"], limit=params["limit"]))
        envelope = await self.subjects_service.list_subject_chapters(subject_id, include_disabled=True)
        return whole_list(envelope, page=params["page"], limit=params["limit"])

    def _require_subject(self) -> int:
        subject_id = self.subject_id
        if not subject_id:
            raise ValidationError({"subject_id": SELECT_SUBJECT_FIRST})
        return subject_id

    async def _create(self, draft: SubjectChapterDraft) -> Envelope[SubjectChapterRecord]:
        return await self.subjects_service.create_subject_chapter(self._require_subject(), draft.payload())

    async def _update(self, record: SubjectChapterRecord, draft: SubjectChapterDraft) -> Envelope[SubjectChapterRecord]:
        return await self.subjects_service.update_subject_chapter(self._require_subject(), record.id, draft.payload())

    async def _create_alias(self, draft: ChapterAliasDraft) -> Envelope[ChapterAliasRecord]:
        if draft.subject_chapter_id is None:
            raise ValidationError({"subject_chapter_id": "Please select the chapter the alias points to"})
        return await self.subjects_service.create_chapter_alias(
            self._require_subject(),
            alias_name=draft.alias_name,
            subject_chapter_id=draft.subject_chapter_id,
        )

    async def mount(self) -> bool:
        await self.load_subjects()
        if self.subject_id is None and self.subjects:
            self.list.set_filter("subject_id", self.subjects[0].id)
        return await self.list.fetch()

    async def load_subjects(self) -> None:
        try:
            response = await self.subjects_service.list_subjects(include_disabled=True)
            if response.ok:
                self.subjects = response.data or []
            else:
                self.notifier.error(response.message or "Failed to load subjects")
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load subjects")

    async def select_subject(self, subject_id: int | None) -> bool:
        self.list.set_filter("subject_id", subject_id)
        self.aliases = []
        return await self.list.fetch()

    def find(self, chapter_id: int) -> SubjectChapterRecord | None:
        return next((item for item in self.list.data if item.id == chapter_id), None)

    async def toggle_status(self, record: SubjectChapterRecord) -> bool:
        subject_id = self.subject_id
        if not subject_id:
            return False
        next_status = 0 if record.status == ENABLED else 1
        verb = "enable" if next_status == ENABLED else "disable"
        return await self.list.mutate(
            lambda: self.subjects_service.update_subject_chapter(subject_id, record.id, {"status": next_status}),
            record_id=record.id,
            control="toggle",
            confirm=self.ask(f"Confirm {verb}", f"{verb.capitalize()} chapter “{chapter_label(record)}”?"),
            success_message="Status updated",
            error_message="Update failed",
        )

    async def sync(self) -> bool:
        subject_id = self.subject_id
        if not subject_id:
            self.notifier.warning(SELECT_SUBJECT_FIRST)
            return False
        return await self.list.mutate(
            lambda: self.subjects_service.sync_subject_chapters(subject_id),
            record_id=subject_id,
            control="sync",
            confirm=self.ask(
                "Sync chapters",
                "Chapters missing from the subject are created from question bank chapter names "
                "and bindings are back-filled. Use this after an import went wrong.",
            ),
            success_message=lambda env: (
                f"Sync completed: {env.data.createdChapters if env.data else 0} created, "
                f"{env.data.boundChapters if env.data else 0} bound"
            ),
            error_message="Sync failed",
        )

    @property
    def syncing(self) -> bool:
        return self.subject_id is not None and self.list.is_busy(self.subject_id, "sync")

    async def load_aliases(self) -> bool:
        subject_id = self.subject_id
        if not subject_id:
            self.aliases = []
            return False
        self.aliases_loading = True
        try:
            response = await self.subjects_service.list_chapter_aliases(subject_id)
            if not response.ok:
                self.notifier.error(response.message or "Failed to load chapter aliases")
                return False
            self.aliases = response.data or []
            return True
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load chapter aliases")
            return False
        finally:
            self.aliases_loading = False

    def open_aliases(self) -> bool:
        if not self.subject_id:
            self.notifier.warning(SELECT_SUBJECT_FIRST)
            return False
        self.alias_form.open_create()
        return True

    async def delete_alias(self, alias: ChapterAliasRecord) -> bool:
        subject_id = self.subject_id
        if not subject_id:
            return False
        deleted = await self.list.mutate(
            lambda: self.subjects_service.delete_chapter_alias(subject_id, alias.id),
            record_id=alias.id,
            control="delete-alias",
            confirm=self.ask("Delete alias", f"Delete alias “{alias.alias_name}”?"),
            success_message="Alias deleted",
            error_message="Delete failed",
            refetch=False,
        )
        if deleted:
            await self.load_aliases()
        return deleted

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "rows": [
                row_dict(
                    item,
                    label=chapter_label(item),
                    statusTag=enabled_tag(item.status),
                    statusLabel=enabled_label(item.status),
                )
                for item in self.list.rows
            ],
            "aliases": [row_dict(item, label=chapter_label(item)) for item in self.aliases],
        }
