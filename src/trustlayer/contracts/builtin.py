"""
Built-in contracts for the host application's entities.

Documents, tasks, task lists and settings arrive with camelCase keys
(``createdAt``, ``listId`` ...); the models accept either spelling.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from trustlayer.contracts.schema import DataContract, QualityCheck, QualityResult, ValidationRule
from trustlayer.results import Severity

PLACEHOLDER_TITLE_PATTERN = re.compile(
    r"^(untitled|new \w+|sample|example|template|placeholder|dummy"
    r"|\[.*?\]|<.*?>|\{\{.*?\}\}|TODO|FIXME|XXX)$",
    re.IGNORECASE,
)
PLACEHOLDER_TAG_PATTERN = re.compile(
    r"^(untagged|uncategorized|general|misc|other|test|sample)$", re.IGNORECASE
)
PLACEHOLDER_ID_PATTERN = re.compile(
    r"^(undefined|null|NaN|infinity|test-?\d*|sample-?\d*|dummy-?\d*)$", re.IGNORECASE
)
PLACEHOLDER_CONTENT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"^lorem\s+ipsum",
        r"^placeholder",
        r"^to be completed",
        r"^tbd:",
        r"^tbc:",
        r"^\[todo\]",
        r"^\[fixme\]",
        r"^\[xxx\]",
        r"^\[hack\]",
    )
]

_SAFE_ID = re.compile(r"^[a-zA-Z0-9_-]+$")
_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")
_EPOCH_FLOOR = datetime(2000, 1, 1, tzinfo=timezone.utc)

MAX_DOCUMENT_SIZE = 100 * 1024 * 1024
MAX_CONTENT_LENGTH = 10 * 1024 * 1024

DocumentType = Literal["markdown", "yaml", "json", "text", "html", "xml"]
TaskPriority = Literal["low", "medium", "high"]
Theme = Literal["dark", "light", "system"]
SyncProvider = Literal["github", "gitlab", "cloudflare", "local"]


class ContractModel(BaseModel):
    """Base model for host entities: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _check_safe_id(value: str, label: str) -> str:
    if not _SAFE_ID.match(value):
        raise ValueError(
            f"{label} must contain only alphanumeric characters, hyphens, and underscores"
        )
    return value


def _check_title(value: str, label: str, markers: tuple[str, ...]) -> str:
    if PLACEHOLDER_TITLE_PATTERN.match(value):
        raise ValueError(f"{label} appears to be a placeholder")
    if any(marker in value for marker in markers):
        raise ValueError(f"{label} cannot contain {', '.join(markers)} markers")
    return value


# =============================================================================
# DOCUMENTS
# =============================================================================


class DocumentMetadata(ContractModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    type: DocumentType
    created_at: AwareDatetime
    updated_at: AwareDatetime
    tags: list[str] = Field(default_factory=list)
    path: Optional[str] = Field(default=None, max_length=1000)
    size: int = Field(ge=0, le=MAX_DOCUMENT_SIZE)
    is_synced: bool
    filename: Optional[str] = Field(default=None, max_length=500)
    source: Optional[str] = Field(default=None, max_length=100)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        _check_safe_id(v, "Document ID")
        if v in {"undefined", "null", "TODO", "FIXME"}:
            raise ValueError("Document ID cannot be a placeholder value")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v, "Title", ("TODO", "FIXME", "XXX"))

    @field_validator("updated_at")
    @classmethod
    def validate_updated_at(cls, v: datetime) -> datetime:
        if not (_EPOCH_FLOOR < v <= datetime.now(timezone.utc)):
            raise ValueError("Updated at must be a reasonable date")
        return v

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        for tag in v:
            if not tag:
                raise ValueError("Tag cannot be empty")
            if len(tag) > 50:
                raise ValueError("Tag cannot exceed 50 characters")
            if PLACEHOLDER_TAG_PATTERN.match(tag):
                raise ValueError(f"Tag appears to be a placeholder: {tag}")
        return v


class Document(ContractModel):
    metadata: DocumentMetadata
    content: str = Field(max_length=MAX_CONTENT_LENGTH)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        lines = v.split("\n")
        placeholder_lines = [
            line for line in lines if any(p.search(line) for p in PLACEHOLDER_CONTENT_PATTERNS)
        ]
        if len(placeholder_lines) / len(lines) >= 0.5:
            raise ValueError("Document content appears to contain excessive placeholders")
        return v


class CreateDocumentInput(ContractModel):
    title: str = Field(min_length=1, max_length=500)
    type: DocumentType


_DOCUMENT_PLACEHOLDER_TITLES = (
    "untitled",
    "new document",
    "sample document",
    "example document",
    "template",
    "placeholder",
    "dummy document",
    "lorem ipsum",
)


def _document_title_not_placeholder(doc: Document) -> bool:
    title = doc.metadata.title.lower()
    return not any(indicator in title for indicator in _DOCUMENT_PLACEHOLDER_TITLES)


def _content_length_check(doc: Document) -> QualityResult:
    length = len(doc.content or "")
    if length == 0:
        return QualityResult(passed=False, score=0, details="Document has no content")
    score = 100
    if length < 10:
        score = 30
    elif length < 50:
        score = 60
    return QualityResult(
        passed=score >= 50,
        score=score,
        details=f"Document content length: {length} characters",
    )


def _title_quality_check(doc: Document) -> QualityResult:
    title = doc.metadata.title
    score = 100
    if len(title) < 3:
        score = 30
    elif len(title) < 5:
        score = 60
    has_words = len(title.split()) >= 2
    if not has_words:
        score = min(score, 50)
    return QualityResult(
        passed=score >= 50,
        score=score,
        details=(
            f"Title quality: {len(title)} chars, "
            f"{'has multiple words' if has_words else 'single word'}"
        ),
    )


DOCUMENT_VALIDATION_RULES: list[ValidationRule[Document]] = [
    ValidationRule(
        name="title-not-placeholder",
        predicate=_document_title_not_placeholder,
        error_message="Document title appears to be a placeholder or template",
        severity=Severity.MEDIUM,
    ),
    ValidationRule(
        name="content-not-empty",
        predicate=lambda doc: doc.content is not None,
        error_message="Document content must not be null or undefined",
        severity=Severity.CRITICAL,
    ),
    ValidationRule(
        name="timestamps-logical",
        predicate=lambda doc: doc.metadata.updated_at >= doc.metadata.created_at,
        error_message="Updated timestamp must be after or equal to created timestamp",
        severity=Severity.HIGH,
    ),
]

DOCUMENT_QUALITY_CHECKS: list[QualityCheck[Document]] = [
    QualityCheck(name="content-length-check", fn=_content_length_check),
    QualityCheck(name="title-quality-check", fn=_title_quality_check),
]


# =============================================================================
# TASKS
# =============================================================================


class Task(ContractModel):
    id: str = Field(min_length=1)
    title: str = Field(min_length=1, max_length=500)
    list_id: str = Field(min_length=1)
    completed: bool
    priority: TaskPriority
    created_at: AwareDatetime
    due_date: Optional[AwareDatetime]
    notes: Optional[str] = Field(default=None, max_length=5000)
    tags: list[str] = Field(default_factory=list)

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        _check_safe_id(v, "Task ID")
        if PLACEHOLDER_ID_PATTERN.match(v):
            raise ValueError("Task ID appears to be a placeholder")
        return v

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _check_title(v, "Task title", ("TODO", "FIXME"))

    @field_validator("tags")
    @classmethod
    def validate_tags(cls, v: list[str]) -> list[str]:
        for tag in v:
            if not tag or len(tag) > 50:
                raise ValueError("Tags must be between 1 and 50 characters")
        return v


class TaskList(ContractModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1, max_length=100)
    color: str
    created_at: AwareDatetime

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        return _check_safe_id(v, "List ID")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if PLACEHOLDER_TITLE_PATTERN.match(v):
            raise ValueError("List name appears to be a placeholder")
        return v

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not _HEX_COLOR.match(v):
            raise ValueError("Color must be a valid hex color code")
        return v


_TASK_PLACEHOLDER_TITLES = (
    "new task",
    "sample task",
    "test task",
    "placeholder",
    "click to add",
    "enter task",
    "todo",
    "fixme",
)

TASK_VALIDATION_RULES: list[ValidationRule[Task]] = [
    ValidationRule(
        name="title-not-placeholder",
        predicate=lambda task: not any(
            indicator in task.title.lower() for indicator in _TASK_PLACEHOLDER_TITLES
        ),
        error_message="Task title appears to be a placeholder",
        severity=Severity.MEDIUM,
    ),
    ValidationRule(
        name="due-date-in-future-or-null",
        predicate=lambda task: task.due_date is None or task.due_date > _EPOCH_FLOOR,
        error_message="Due date must be a valid future date",
        severity=Severity.MEDIUM,
    ),
]


# =============================================================================
# SETTINGS
# =============================================================================


class SyncConfig(ContractModel):
    enabled: bool
    provider: Optional[SyncProvider]
    token: Optional[str] = Field(default=None, max_length=500)
    repo: Optional[str] = Field(default=None, max_length=500)
    branch: str = Field(default="main", max_length=100)
    interval: int = Field(ge=1, le=1440)

    @field_validator("repo")
    @classmethod
    def validate_repo(cls, v: Optional[str]) -> Optional[str]:
        if v and "/" not in v:
            raise ValueError('Repository must be in format "owner/repo"')
        return v


class AppSettings(ContractModel):
    theme: Theme
    font_size: int = Field(ge=8, le=32)
    tab_size: int = Field(ge=2, le=8)
    word_wrap: bool
    auto_save: bool
    auto_save_interval: int = Field(ge=5, le=300)
    sync: SyncConfig


SYNC_CONFIG_VALIDATION_RULES: list[ValidationRule[SyncConfig]] = [
    ValidationRule(
        name="sync-token-valid",
        predicate=lambda config: not (config.enabled and config.provider and not config.token),
        error_message="Sync token is required when sync is enabled",
        severity=Severity.HIGH,
    ),
    ValidationRule(
        name="sync-repo-valid",
        predicate=lambda config: not (config.enabled and config.provider and not config.repo),
        error_message="Repository is required when sync is enabled",
        severity=Severity.HIGH,
    ),
]


def default_contracts() -> dict[str, DataContract]:
    """Build fresh contracts for every built-in entity, keyed by registry key."""

    return {
        "documentMetadata": DataContract(
            schema=DocumentMetadata, description="Document metadata without content"
        ),
        "document": DataContract(
            schema=Document,
            validation_rules=list(DOCUMENT_VALIDATION_RULES),
            quality_checks=list(DOCUMENT_QUALITY_CHECKS),
            description="Full document with content",
        ),
        "createDocument": DataContract(
            schema=CreateDocumentInput, description="Input for creating a document"
        ),
        "task": DataContract(
            schema=Task,
            validation_rules=list(TASK_VALIDATION_RULES),
            description="Task item",
        ),
        "taskList": DataContract(schema=TaskList, description="Task list"),
        "appSettings": DataContract(schema=AppSettings, description="Application settings"),
        "syncConfig": DataContract(
            schema=SyncConfig,
            validation_rules=list(SYNC_CONFIG_VALIDATION_RULES),
            description="Remote sync configuration",
        ),
    }
