from __future__ import annotations

import logging
from typing import Any

from qbadmin.application.actions import report_failure
from qbadmin.application.drafts import ImageRenameDraft, ImageUploadDraft
from qbadmin.application.forms import FormController, validate_draft
from qbadmin.application.list_state import ListStateController
from qbadmin.application.screens.base import Screen, format_file_size, row_dict, whole_list
from qbadmin.application.services.question_banks import QuestionBanksService
from qbadmin.application.services.subjects import SubjectsService
from qbadmin.domain.errors import ValidationError
from qbadmin.domain.models import (
    BankImageRecord,
    Envelope,
    ImageRenameResult,
    PageResult,
    QuestionBankRecord,
    SubjectRecord,
    UploadFile,
)
from qbadmin.infra.ports.confirm import ConfirmPort
from qbadmin.infra.ports.notifier import NotifierPort

logger = logging.getLogger(__name__)

BANK_PICKER_LIMIT = 100


def summarize_images(items: list[BankImageRecord]) -> dict[str, int]:
    stats = {"total": len(items), "referenced_images": 0, "references": 0, "total_size": 0}
    for item in items:
        used = item.reference_count
        if used > 0:
            stats["referenced_images"] += 1
        stats["references"] += used
        stats["total_size"] += item.size or 0
    return stats


def delete_prompt(image: BankImageRecord, *, force: bool) -> tuple[str, str]:
    title = "Confirm forced deletion" if force else "Confirm deletion"
    used = image.reference_count
    if used:
        advice = "it will be deleted anyway" if force else "replace those references first"
        return title, f"This image is referenced by {used} questions; {advice}."
    return title, "Deletion cannot be undone. Continue?"


class ImagesScreen(Screen):
    """Images stored for one question bank.

    The backend returns every image of the bank at once, so paging happens
    here: ``rows`` is a slice of ``data`` and ``total`` is ``len(data)``.
    """

    def __init__(
        self,
        *,
        banks: QuestionBanksService,
        subjects: SubjectsService,
        notifier: NotifierPort,
        confirmer: ConfirmPort,
        subject_id: int | None = None,
        bank_id: int | None = None,
        page: int = 1,
        limit: int = 24,
    ):
        super().__init__(notifier=notifier, confirmer=confirmer)
        self.banks_service = banks
        self.subjects_service = subjects
        self.subject_id = subject_id
        self.list: ListStateController[BankImageRecord] = ListStateController(
            self._load,
            notifier=notifier,
            filters={"bank_id": bank_id},
            page=page,
            limit=limit,
            summarize=summarize_images,
            client_paged=True,
            error_message="Failed to load images",
        )
        self.rename_form: FormController[ImageRenameDraft, BankImageRecord] = FormController(
            schema=ImageRenameDraft,
            create=self._rename_without_target,
            update=self._rename,
            notifier=notifier,
            on_success=self.list.fetch,
            defaults={"overwrite": False},
            to_draft=lambda record: {"new_filename": record.filename},
            update_message=lambda env: (
                f"Renamed, {env.data.updatedQuestions if env.data else 0} questions updated"
            ),
            error_message="Rename failed",
        )

        self.subjects: list[SubjectRecord] = []
        self.banks: list[QuestionBankRecord] = []
        self.uploading = False

    @property
    def bank_id(self) -> int | None:
        return self.list.filters.get("bank_id")

    async def _load(self, params: dict[str, Any]) -> Envelope[PageResult[BankImageRecord]]:
        bank_id = params.get("bank_id")
        if not bank_id:
            return Envelope(code=200, data=PageResult(items=[], total=0, page=1, limit=params["limit"]))
        envelope = await self.banks_service.list_bank_images(bank_id)
        return whole_list(envelope, page=1, limit=params["limit"])

    async def _rename(self, record: BankImageRecord, draft: ImageRenameDraft) -> Envelope[ImageRenameResult]:
        bank_id = self.bank_id
        if not bank_id:
            raise ValidationError({"bank_id": "Please select a question bank first"})
        return await self.banks_service.rename_bank_image(
            bank_id,
            record.filename,
            draft.new_filename,
            overwrite=draft.overwrite,
        )

    async def _rename_without_target(self, draft: ImageRenameDraft) -> Envelope[ImageRenameResult]:
        raise ValidationError({"filename": "Please choose the image to rename"})

    async def mount(self) -> bool:
        await self.load_subjects()
        if self.subject_id:
            await self.load_banks(self.subject_id, keep_selection=self.bank_id is not None)
        if not self.bank_id:
            return True
        page = self.list.page
        loaded = await self.list.fetch()
        # A reload lands on page one; an explicit page from the caller is kept.
        self.list.set_page(page)
        return loaded

    async def load_subjects(self) -> None:
        try:
            response = await self.subjects_service.list_subjects(include_disabled=True)
            if response.ok:
                self.subjects = response.data or []
            else:
                self.notifier.error(response.message or "Failed to load subjects")
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load subjects")

    async def load_banks(self, subject_id: int | None, *, keep_selection: bool = False) -> None:
        if not subject_id:
            self.banks = []
            self.list.set_filter("bank_id", None)
            return
        try:
            response = await self.banks_service.list_question_banks(
                page=1,
                limit=BANK_PICKER_LIMIT,
                subject_id=subject_id,
            )
        except Exception as exc:
            report_failure(self.notifier, exc, "Failed to load question banks")
            return
        if not response.ok or response.data is None:
            self.notifier.error(response.message or "Failed to load question banks")
            return
        self.banks = response.data.items
        if not keep_selection:
            self.list.set_filter("bank_id", self.banks[0].id if self.banks else None)

    async def select_subject(self, subject_id: int | None) -> bool:
        self.subject_id = subject_id
        await self.load_banks(subject_id)
        return await self.list.fetch()

    async def select_bank(self, bank_id: int | None) -> bool:
        self.list.set_filter("bank_id", bank_id)
        return await self.list.fetch()

    def find(self, filename: str) -> BankImageRecord | None:
        return next((item for item in self.list.data if item.filename == filename), None)

    async def upload(self, files: list[UploadFile], *, overwrite: bool = False) -> bool:
        try:
            draft = validate_draft(ImageUploadDraft, {"bank_id": self.bank_id, "files": files, "overwrite": overwrite})
        except ValidationError as exc:
            self.notifier.warning(exc.message)
            return False
        bank_id = draft.bank_id
        if bank_id is None:
            self.notifier.warning("Please select a question bank first")
            return False

        async def run() -> bool:
            self.uploading = True
            try:
                response = await self.banks_service.upload_bank_images(bank_id, draft.files, overwrite=draft.overwrite)
            except Exception as exc:
                report_failure(self.notifier, exc, "Upload failed")
                return False
            finally:
                self.uploading = False
            if not response.ok:
                self.notifier.error(response.message or "Upload failed")
                return False
            skipped = len(response.data.skipped) if response.data else 0
            if skipped:
                self.notifier.warning(f"Upload finished, skipped {skipped} images with existing names")
            else:
                self.notifier.success("Images uploaded")
            await self.list.fetch()
            return True

        return bool(await self.list.guard.run(("upload", bank_id), run))

    def open_rename(self, image: BankImageRecord) -> None:
        self.rename_form.open_edit(image)

    async def delete(self, image: BankImageRecord, *, force: bool = False) -> bool:
        bank_id = self.bank_id
        if not bank_id:
            return False
        title, content = delete_prompt(image, force=force)
        return await self.list.mutate(
            lambda: self.banks_service.delete_bank_image(bank_id, image.filename, force=force),
            record_id=image.filename,
            control="delete",
            confirm=self.ask(title, content),
            success_message="Deleted",
            error_message="Delete failed",
        )

    def summary(self) -> dict[str, Any]:
        stats: dict[str, Any] = dict(self.list.summary)
        stats["total_size_label"] = format_file_size(stats.get("total_size", 0))
        return stats

    def view(self) -> dict[str, Any]:
        return {
            **self.list.snapshot(),
            "summary": self.summary(),
            "rows": [
                row_dict(item, referenceCount=item.reference_count, sizeLabel=format_file_size(item.size))
                for item in self.list.rows
            ],
            "banks": [{"id": item.id, "name": item.name} for item in self.banks],
        }
