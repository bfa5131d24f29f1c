"""Backend REST paths consumed by the console."""

from __future__ import annotations

from urllib.parse import quote

LOGIN = "/auth/login"
REGISTER = "/auth/register"
LOGOUT = "/auth/logout"
REFRESH = "/auth/refresh"
PROFILE = "/auth/profile"

ADMIN_MARKDOWN_FILES = "/admin/markdown-files"

SUBJECTS = "/subjects"
SUBJECTS_ADMIN = "/subjects/admin"

ADMIN_QUESTION_BANKS = "/admin/question-banks"
ADMIN_QUESTION_BANK_IMPORT = "/admin/question-banks/import-json"

ADMIN_ESSAY_ORGS = "/admin/essay-orgs"
ADMIN_ESSAYS = "/admin/essays"
ADMIN_ESSAY_PERMISSIONS = "/admin/essay-permissions"
ADMIN_ESSAY_PERMISSION_USERS = "/admin/essay-permissions/users"

PROVIDER_CONFIGS = "/system/providers"
KNOWLEDGE_FORMAT = "/system/knowledge-format"
QUESTION_FORMAT = "/system/question-parse-format"


def markdown_file(file_id: int) -> str:
    return f"{ADMIN_MARKDOWN_FILES}/{file_id}"


def markdown_file_parse(file_id: int) -> str:
    return f"{ADMIN_MARKDOWN_FILES}/{file_id}/parse"


def markdown_file_chapters(file_id: int) -> str:
    return f"{ADMIN_MARKDOWN_FILES}/{file_id}/chapters"


def subject(subject_id: int) -> str:
    return f"{SUBJECTS}/{subject_id}"


def subject_chapters(subject_id: int) -> str:
    return f"{SUBJECTS}/{subject_id}/chapters"


def subject_chapter(subject_id: int, chapter_id: int) -> str:
    return f"{subject_chapters(subject_id)}/{chapter_id}"


def subject_chapters_sync(subject_id: int) -> str:
    return f"{subject_chapters(subject_id)}/sync"


def subject_chapter_aliases(subject_id: int) -> str:
    return f"{SUBJECTS}/{subject_id}/chapter-aliases"


def subject_chapter_alias(subject_id: int, alias_id: int) -> str:
    return f"{subject_chapter_aliases(subject_id)}/{alias_id}"


def question_bank_chapter_import(bank_id: int) -> str:
    return f"{ADMIN_QUESTION_BANKS}/{bank_id}/chapters/import-json"


def question_bank_subject_chapters(bank_id: int) -> str:
    return f"{ADMIN_QUESTION_BANKS}/{bank_id}/subject-chapters"


def question_bank_chapters(bank_id: int) -> str:
    return f"/question-banks/{bank_id}/chapters"


def question_bank_chapter(bank_id: int, chapter_id: int) -> str:
    return f"{question_bank_chapters(bank_id)}/{chapter_id}"


def question_bank_images(bank_id: int) -> str:
    return f"/question-banks/{bank_id}/images"


def question_bank_image(bank_id: int, filename: str) -> str:
    return f"{question_bank_images(bank_id)}/{quote(filename, safe='')}"


def essay_org(org_id: int) -> str:
    return f"{ADMIN_ESSAY_ORGS}/{org_id}"


def essay(essay_id: int) -> str:
    return f"{ADMIN_ESSAYS}/{essay_id}"


def provider_config(provider_id: int) -> str:
    return f"{PROVIDER_CONFIGS}/{provider_id}"


def provider_models(provider_id: int) -> str:
    return f"{provider_config(provider_id)}/models"
