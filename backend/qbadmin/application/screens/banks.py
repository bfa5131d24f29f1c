from __future__ import annotations

from typing import Any, Literal

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import BankImportDraft, ChapterImportDraft
from qbadmin.application.forms import FormController
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, row_dict
from qbadmin.application.services.question_banks import QuestionBanksService
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import (
    BankChapterRecord,
    ChapterImportResult,
    Envelope,
    PageResult,
    QuestionBankRecord,
    SubjectChapterRecord,
    SubjectRecord,
)
from qbadmin.domain.status import parse_status_label, parse_status_tag
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

ImportMode = Literal["full", "chapter"]


def summarize_banks(items: list[QuestionBankRecord]) -> dict[str, int]:
    return {
        "page_questions": sum(item.total_questions or 0 for item in items),
        "page_chapters": sum(item.chapter_count or 0 for item in items),
        "completed": sum(1 for item in items if item.parse_status == "completed"),
        "failed": sum(1 for item in items if item.parse_status == "failed"),
    }


class BanksScreen(Screen):
    def __init__(
        self,
        *,
        banks: QuestionBanksService,
        subjects: SubjectsService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        subject_id: int | None = None,
        page: int = 1,
        limit: int = 10,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.banks = banks
        self.subjects_service = subjects
        self.list: ListStateController[QuestionBankRecord] = ListStateController(
            self._load,
            notifier=notifier,
            filters={"subject_id": subject_id},
            page=page,
            limit=limit,
            summarize=summarize_banks,
            error_message="Failed to load question banks",
        )
        self.bank_import: FormController[BankImportDraft, QuestionBankRecord] = FormController(
            schema=BankImportDraft,
            create=self._import_bank,
            notifier=notifier,
            on_success=self.list.fetch,
            create_message="Question bank imported",
            error_message="Question bank import failed",
        )
        self.chapter_import: FormController[ChapterImportDraft, ChapterImportResult] = FormController(
            schema=ChapterImportDraft,
            create=self._import_chapter,
            notifier=notifier,
            on_success=self.list.fetch,
            create_message="Chapter imported",
            error_message="Chapter import failed",
        )

        self.subjects: list[SubjectRecord] = []
        self.subject_chapters: list[SubjectChapterRecord] = []
        self.current_bank: QuestionBankRecord | None = None
        self.chapter_stats: list[BankChapterRecord] = []

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[QuestionBankRecord]]:
        return await self.banks.list_question_banks(
            page=params["page"],
            limit=params["limit"],
            subject_id=params.get("subject_id"),
        )

    async def _import_bank(self, draft: BankImportDraft) -> Envelope[QuestionBankRecord]:
        if draft.file is None or draft.subject_id is None:
            raise ValidationError({"file": "Please select a JSON file"})
        return await self.banks.import_bank_json(
            draft.file,
            subject_id=draft.subject_id,
            name=draft.name or None,
            description=draft.description or None,
        )

    async def _import_chapter(self, draft: ChapterImportDraft) -> Envelope[ChapterImportResult]:
        if draft.file is None or draft.bank_id is None or draft.subject_chapter_id is None:
            raise ValidationError({"file": "Please select a JSON file"})
        return await self.banks.import_chapter_json(
            draft.file,
            bank_id=draft.bank_id,
            subject_chapter_id=draft.subject_chapter_id,
        )

    def import_form(self, mode: ImportMode) -> FormController[Any, Any]:
        return self.bank_import if mode == "full" else self.chapter_import

    async def mount(self) -> bool:
        await self.load_subjects()
        subject_id = self.list.filters.get("subject_id")
        if subject_id:
            await self.load_subject_chapters(subject_id)
        return await self.list.fetch()

    async def load_subjects(self) -> None:
        try:
            response = await self.subjects_service.list_subjects(include_disabled=True)
            if response.ok:
                self.subjects = response.data or []
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load subjects")

    async def load_subject_chapters(self, subject_id: int | None) -> None:
        if not subject_id:
            self.subject_chapters = []
            return
        try:
            response = await self.subjects_service.list_subject_chapters(subject_id, include_disabled=True)
            if response.ok:
                self.subject_chapters = response.data or []
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load chapters")

    async def select_subject(self, subject_id: int | None) -> bool:
        self.list.set_filter("subject_id", subject_id)
        await self.load_subject_chapters(subject_id)
        return await self.list.fetch()

    async def open_chapter_import(self, bank_id: int) -> bool:
        """Open the chapter import form with the chapters of the bank's subject as targets."""
        self.chapter_import.open_create()
        self.chapter_import.update_draft(bank_id=bank_id)
        try:
            response = await self.banks.get_bank_subject_chapters(bank_id)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load subject chapters")
            return False
        if not response.ok:
            self.notifier.error(response.message or "Failed to load subject chapters")
            return False
        self.subject_chapters = response.data or []
        return True

    async def open_chapter_stats(self, bank: QuestionBankRecord) -> bool:
        self.current_bank = bank
        return await self._reload_chapter_stats()

    async def _reload_chapter_stats(self) -> bool:
        if self.current_bank is None:
            return False
        try:
            response = await self.banks.get_bank_chapters(self.current_bank.id)
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load chapter question counts")
            return False
        if not response.ok:
            self.notifier.error(response.message or "Failed to load chapter question counts")
            return False
        self.chapter_stats = response.data or []
        return True

    async def delete_chapter(self, chapter: BankChapterRecord) -> bool:
        bank = self.current_bank
        if bank is None:
            return False
        deleted = await self.list.mutate(
            lambda: self.banks.delete_bank_chapter(bank.id, chapter.id),
            record_id=chapter.id,
            control="delete-chapter",
            confirm=self.ask("Confirm deletion", f"Delete chapter “{chapter.chapter_name}” and its questions?"),
            success_message="Chapter deleted",
            error_message="Failed to delete chapter",
        )
        if deleted:
            await self._reload_chapter_stats()
        return deleted

    def summary(self) -> dict[str, int]:
        return {"total_banks": self.list.total or len(self.list.data), **self.list.summary}

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "summary": self.summary(),
            "rows": [
                row_dict(
                    item,
                    statusTag=parse_status_tag(item.parse_status),
                    statusLabel=parse_status_label(item.parse_status),
                )
                for item in self.list.rows
            ],
        }
