from typing import Any

from pydantic import BaseModel, Field


class NotificationItem(BaseModel):
    id: str
    level: str
    content: str


class PromptItem(BaseModel):
    title: str
    content: str


class ConsoleResponse(BaseModel):
    notifications: list[NotificationItem] = Field(default_factory=list)
    redirect: str | None = None


class ScreenResponse(ConsoleResponse):
    phase: str
    filters: dict[str, Any] = Field(default_factory=dict)
    page: int
    limit: int
    total: int
    loading: bool = False
    refreshing: bool = False
    error: str | None = None
    summary: dict[str, Any] = Field(default_factory=dict)
    rows: list[dict[str, Any]] = Field(default_factory=list)
    extras: dict[str, Any] = Field(default_factory=dict)


class ActionResponse(ConsoleResponse):
    ok: bool
    confirmRequired: bool = False
    prompt: PromptItem | None = None
    fieldErrors: dict[str, str] = Field(default_factory=dict)
    data: Any = None
