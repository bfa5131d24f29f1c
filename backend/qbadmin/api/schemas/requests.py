from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class RegisterRequest(LoginRequest):
    nickname: str | None = None
    phone: str | None = None


class ProfileRequest(BaseModel):
    nickname: str | None = None
    avatar_url: str | None = None
    phone: str | None = None


class SubjectRequest(BaseModel):
    name: str = ""
    code: str | None = None
    sort_order: int = 0
    status: bool | int = True


class SubjectChapterRequest(BaseModel):
    chapter_name: str = ""
    display_name: str | None = None
    chapter_order: int = 0
    status: bool | int = True


class ChapterAliasRequest(BaseModel):
    alias_name: str = ""
    subject_chapter_id: int | None = None


class EssayOrgRequest(BaseModel):
    name: str = ""
    description: str | None = None
    status: bool | int = True
    sort_order: int = 0


class EssayPermissionRequest(BaseModel):
    subjectId: int
    userIds: list[int] = Field(default_factory=list)


class ImageRenameRequest(BaseModel):
    newFilename: str = ""
    overwrite: bool = False


class ProviderRequest(BaseModel):
    type: str = ""
    name: str = ""
    endpoint: str = ""
    api_key: str = ""
    description: str | None = None
    status: bool | int = True


class ProviderStatusRequest(BaseModel):
    enabled: bool


class SettingDocumentRequest(BaseModel):
    content: str = ""
