from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Generic, Literal, TypeVar

ParseStatus = Literal["pending", "parsing", "completed", "failed"]
StatusTag = Literal["default", "processing", "success", "error", "warning"]
SettingType = Literal["knowledge_format", "question_parse_format"]

SUCCESS_CODE = 200
CREATED_CODE = 201
UNAUTHORIZED_CODE = 401

ENABLED = 1
DISABLED = 0

T = TypeVar("T")
R = TypeVar("R")


def from_payload(cls: type[R], raw: Any) -> R:
    """Build a dataclass from a backend JSON object, ignoring unknown keys."""
    if not isinstance(raw, dict):
        raise TypeError(f"Expected object for {cls.__name__}, got {type(raw).__name__}")
    known = {item.name for item in fields(cls)}  # type: ignore[arg-type]
    return cls(**{key: value for key, value in raw.items() if key in known})


def from_payload_list(cls: type[R], raw: Any) -> list[R]:
    if not isinstance(raw, list):
        return []
    return [from_payload(cls, item) for item in raw if isinstance(item, dict)]


@dataclass
class Envelope(Generic[T]):
    code: int
    message: str = ""
    data: T | None = None

    @property
    def ok(self) -> bool:
        return self.code == SUCCESS_CODE


@dataclass
class PageResult(Generic[T]):
    items: list[T]
    total: int
    page: int = 1
    limit: int = 10


@dataclass
class UploadFile:
    filename: str
    content: bytes
    content_type: str | None = None

    def as_multipart(self) -> tuple[str, bytes, str]:
        return (self.filename, self.content, self.content_type or "application/octet-stream")


@dataclass
class UserRecord:
    id: int
    username: str | None = None
    openid: str | None = None
    nickname: str | None = None
    avatar_url: str | None = None
    phone: str | None = None
    role_id: int | None = None
    status: int = ENABLED
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class LoginResult:
    access_token: str
    refresh_token: str | None
    expires_in: str | None
    user: UserRecord | None


@dataclass
class FileRecord:
    id: int
    name: str
    description: str | None = None
    original_filename: str | None = None
    file_path: str | None = None
    file_size: int | None = None
    parse_status: ParseStatus = "pending"
    chapter_count: int = 0
    question_count: int = 0
    created_by: int | None = None
    creator_name: str | None = None
    created_at: str | None = None
    updated_at: str | None = None
    file_url: str | None = None


@dataclass
class ChapterRecord:
    id: int
    file_id: int
    chapter_title: str
    chapter_order: int
    file_path: str | None = None
    file_size: int | None = None
    download_url: str = ""


@dataclass
class ParseResult:
    chapter_count: int = 0


@dataclass
class SubjectRecord:
    id: int
    name: str
    code: str | None = None
    status: int = ENABLED
    sort_order: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class SubjectChapterRecord:
    id: int
    subject_id: int
    chapter_name: str
    display_name: str | None = None
    chapter_order: int = 0
    status: int = ENABLED
    question_count: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ChapterAliasRecord:
    id: int
    subject_id: int
    subject_chapter_id: int
    alias_name: str
    chapter_name: str = ""
    display_name: str | None = None
    chapter_order: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ChapterSyncResult:
    totalBanks: int = 0
    totalChapters: int = 0
    createdChapters: int = 0
    boundChapters: int = 0
    skippedChapters: int = 0


@dataclass
class QuestionBankRecord:
    id: int
    name: str
    description: str | None = None
    subject_id: int | None = None
    subject_name: str | None = None
    total_questions: int = 0
    parse_status: ParseStatus = "pending"
    chapter_count: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class BankChapterRecord:
    id: int
    bank_id: int
    chapter_name: str
    chapter_order: int = 0
    question_count: int = 0
    subject_chapter_id: int | None = None
    subject_chapter_name: str | None = None
    subject_display_name: str | None = None
    subject_chapter_order: int | None = None


@dataclass
class ChapterImportResult:
    bankId: int
    chapterId: int
    questionCount: int = 0


@dataclass
class BankImageRecord:
    filename: str
    url: str = ""
    size: int = 0
    last_modified: str | None = None
    used_in_questions: list[int] = field(default_factory=list)

    @property
    def reference_count(self) -> int:
        return len(self.used_in_questions or [])


@dataclass
class ImageUploadResult:
    uploaded: list[dict[str, Any]] = field(default_factory=list)
    skipped: list[dict[str, Any]] = field(default_factory=list)
    total_uploaded: int = 0


@dataclass
class ImageRenameResult:
    oldFilename: str
    newFilename: str
    updatedQuestions: int = 0


@dataclass
class ImageDeleteResult:
    deleted: bool = False
    usedInQuestions: list[int] = field(default_factory=list)


@dataclass
class EssayOrgRecord:
    id: int
    name: str
    description: str | None = None
    status: int = ENABLED
    sort_order: int = 0
    essay_count: int = 0
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class EssayRecord:
    id: int
    title: str
    org_id: int
    subject_id: int
    subject_chapter_id: int
    org_name: str | None = None
    subject_name: str | None = None
    subject_chapter_name: str | None = None
    file_path: str | None = None
    file_size: int | None = None
    status: int = ENABLED
    created_by: int | None = None
    creator_name: str | None = None
    content_url: str | None = None
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class PermissionUserRecord:
    id: int
    nickname: str | None = None
    username: str | None = None
    phone: str | None = None
    status: int = ENABLED
    role_name: str | None = None


@dataclass
class EssayPermission:
    subject_id: int
    user_ids: list[int] = field(default_factory=list)
    users: list[PermissionUserRecord] = field(default_factory=list)
    updated_at: str | None = None


@dataclass
class ProviderConfig:
    id: int
    name: str
    endpoint: str
    api_key: str = ""
    type: str | None = None
    description: str | None = None
    status: int = ENABLED
    created_at: str | None = None
    updated_at: str | None = None


@dataclass
class ProviderModel:
    id: str
    name: str | None = None
    provider_id: int | None = None
    owned_by: str | None = None


@dataclass
class SystemSetting:
    type: SettingType
    payload: Any = None
    updated_by: int | None = None
    updated_at: str | None = None
