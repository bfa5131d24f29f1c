from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

from qbadmin.domain.models import UploadFile


def _required_text(value: str | None, label: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValueError(f"Please enter {label}")
    return text


def _required(value: Any, message: str) -> Any:
    if value is None:
        raise ValueError(message)
    return value


def _require_extension(file: UploadFile | None, extensions: tuple[str, ...], label: str) -> UploadFile:
    if file is None:
        raise ValueError(f"Please select {label}")
    if not file.filename.lower().endswith(extensions):
        raise ValueError(f"Only {', '.join(extensions)} files are accepted")
    return file


def _to_status(value: Any) -> int:
    if isinstance(value, bool):
        return 1 if value else 0
    return 1 if str(value).strip() in {"1", "true", "True"} else 0


class _Draft(BaseModel):
    # Defaults are validated too, so a missing required value is reported on its own field.
    model_config = ConfigDict(str_strip_whitespace=True, arbitrary_types_allowed=True, validate_default=True)


class LoginDraft(_Draft):
    username: str = ""
    password: str = ""

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        return _required_text(v, "a username")

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        return _required_text(v, "a password")


class MarkdownUploadDraft(_Draft):
    name: str = ""
    description: str | None = None
    file: UploadFile | None = None

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v, "a document name")

    @field_validator("file")
    @classmethod
    def _file(cls, v: UploadFile | None) -> UploadFile:
        return _require_extension(v, (".md",), "a Markdown file to upload")


class SubjectDraft(_Draft):
    name: str = ""
    code: str | None = None
    sort_order: int = 0
    status: int = 1

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v, "a subject name")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> int:
        return _to_status(v)

    def payload(self) -> dict[str, Any]:
        return {"name": self.name, "code": self.code or None, "sort_order": self.sort_order, "status": self.status}


class SubjectChapterDraft(_Draft):
    chapter_name: str = ""
    display_name: str | None = None
    chapter_order: int = 0
    status: int = 1

    @field_validator("chapter_name")
    @classmethod
    def _chapter_name(cls, v: str) -> str:
        return _required_text(v, "a chapter name")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> int:
        return _to_status(v)

    def payload(self) -> dict[str, Any]:
        return {
            "chapter_name": self.chapter_name,
            "display_name": self.display_name or None,
            "chapter_order": self.chapter_order,
            "status": self.status,
        }


class ChapterAliasDraft(_Draft):
    alias_name: str = ""
    subject_chapter_id: int | None = None

    @field_validator("alias_name")
    @classmethod
    def _alias_name(cls, v: str) -> str:
        return _required_text(v, "an alias")

    @field_validator("subject_chapter_id")
    @classmethod
    def _chapter(cls, v: int | None) -> int:
        return _required(v, "Please select the chapter the alias points to")


class BankImportDraft(_Draft):
    subject_id: int | None = None
    name: str | None = None
    description: str | None = None
    file: UploadFile | None = None

    @field_validator("subject_id")
    @classmethod
    def _subject(cls, v: int | None) -> int:
        return _required(v, "Please select a subject")

    @field_validator("file")
    @classmethod
    def _file(cls, v: UploadFile | None) -> UploadFile:
        return _require_extension(v, (".json",), "a JSON file")


class ChapterImportDraft(_Draft):
    bank_id: int | None = None
    subject_chapter_id: int | None = None
    file: UploadFile | None = None

    @field_validator("bank_id")
    @classmethod
    def _bank(cls, v: int | None) -> int:
        return _required(v, "Please select a question bank")

    @field_validator("subject_chapter_id")
    @classmethod
    def _chapter(cls, v: int | None) -> int:
        return _required(v, "Please select a subject chapter")

    @field_validator("file")
    @classmethod
    def _file(cls, v: UploadFile | None) -> UploadFile:
        return _require_extension(v, (".json",), "a JSON file")


class ImageUploadDraft(_Draft):
    bank_id: int | None = None
    files: list[UploadFile] = Field(default_factory=list)
    overwrite: bool = False

    @field_validator("bank_id")
    @classmethod
    def _bank(cls, v: int | None) -> int:
        return _required(v, "Please select a question bank first")

    @field_validator("files")
    @classmethod
    def _files(cls, v: list[UploadFile]) -> list[UploadFile]:
        if not v:
            raise ValueError("Please select images first")
        return v


class ImageRenameDraft(_Draft):
    new_filename: str = ""
    overwrite: bool = False

    @field_validator("new_filename")
    @classmethod
    def _new_filename(cls, v: str) -> str:
        text = _required_text(v, "the new file name")
        if "/" in text or "\\" in text:
            raise ValueError("File name must not contain path separators")
        return text


class EssayOrgDraft(_Draft):
    name: str = ""
    description: str | None = None
    status: int = 1
    sort_order: int = 0

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v, "an organisation name")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> int:
        return _to_status(v)

    def payload(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description or None,
            "status": self.status,
            "sort_order": self.sort_order,
        }


class EssayDraft(_Draft):
    title: str = ""
    org_id: int | None = None
    subject_id: int | None = None
    subject_chapter_id: int | None = None
    status: int = 1
    # Existing essays keep their stored file unless a new one is chosen.
    editing: bool = False
    file: UploadFile | None = None

    @field_validator("title")
    @classmethod
    def _title(cls, v: str) -> str:
        return _required_text(v, "an essay title")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> int:
        return _to_status(v)

    @field_validator("org_id")
    @classmethod
    def _org(cls, v: int | None) -> int:
        return _required(v, "Please select an organisation")

    @field_validator("subject_id")
    @classmethod
    def _subject(cls, v: int | None) -> int:
        return _required(v, "Please select a subject")

    @field_validator("subject_chapter_id")
    @classmethod
    def _chapter(cls, v: int | None) -> int:
        return _required(v, "Please select a chapter")

    @field_validator("file")
    @classmethod
    def _file(cls, v: UploadFile | None, info: ValidationInfo) -> UploadFile | None:
        if v is None and info.data.get("editing"):
            return None
        return _require_extension(v, (".md",), "a Markdown file")


class ProviderDraft(_Draft):
    type: str = ""
    name: str = ""
    endpoint: str = ""
    api_key: str = ""
    description: str | None = None
    status: int = 1

    @field_validator("type")
    @classmethod
    def _type(cls, v: str) -> str:
        return _required_text(v, "a provider type")

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        return _required_text(v, "a provider name")

    @field_validator("endpoint")
    @classmethod
    def _endpoint(cls, v: str) -> str:
        return _required_text(v, "an endpoint")

    @field_validator("api_key")
    @classmethod
    def _api_key(cls, v: str) -> str:
        return _required_text(v, "an API key")

    @field_validator("status", mode="before")
    @classmethod
    def _status(cls, v: Any) -> int:
        return _to_status(v)

    def payload(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "name": self.name,
            "endpoint": self.endpoint,
            "api_key": self.api_key,
            "description": self.description or "",
            "status": self.status,
        }


class SettingDocumentDraft(_Draft):
    content: str = ""

    @field_validator("content")
    @classmethod
    def _content(cls, v: str) -> str:
        try:
            json.loads(v or "")
        except ValueError as exc:
            raise ValueError("Please enter valid JSON content") from exc
        return v

    def parsed(self) -> Any:
        return json.loads(self.content)
