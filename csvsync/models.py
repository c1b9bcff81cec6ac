from __future__ import annotations

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from .columns import ColumnRoles, resolve_columns

FilterMode = Literal["all", "empty", "with_content", "custom"]
ExportFormat = Literal["omnichat", "zenvia"]
SmsStatus = Literal["ok", "near_limit", "over_limit"]


class Table(BaseModel):
    """
    Parsed CSV held in memory.

    Rows are positional; a row may be shorter or longer than ``headers``.
    Tables are never mutated: filters and splits build a new one via
    ``derive``, which leaves ``raw_text`` empty.
    """

    model_config = ConfigDict(frozen=True)

    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)
    raw_text: str = ""
    roles: ColumnRoles = Field(default_factory=ColumnRoles)

    @model_validator(mode="before")
    @classmethod
    def _resolve_roles(cls, data: Any) -> Any:
        # Roles always follow the headers; any incoming value is discarded
        if isinstance(data, dict):
            data = {**data, "roles": resolve_columns(data.get("headers") or [])}
        return data

    @computed_field
    @property
    def row_count(self) -> int:
        return len(self.rows)

    def derive(self, rows: List[List[str]], headers: Optional[List[str]] = None) -> "Table":
        return Table(headers=list(self.headers) if headers is None else headers, rows=rows)


class Stats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_records: int = 0
    valid_phone_numbers: int = 0
    duplicate_phone_numbers: int = 0
    empty_messages: int = 0
    corrected_phone_numbers: Optional[int] = None


class PhoneOptions(BaseModel):
    remove_duplicates: bool = False
    fix_format: bool = False


class FilterSpec(BaseModel):
    phone_numbers: PhoneOptions = Field(default_factory=PhoneOptions)
    messages: FilterMode = "all"
    custom_message_filter: Optional[str] = None
    templates: FilterMode = "all"
    custom_template_filter: Optional[str] = None
    show_only_main_columns: bool = False


class FilterResult(BaseModel):
    table: Table
    stats: Stats


class ValidationIssue(BaseModel):
    row: Optional[int] = None
    column: Optional[str] = None
    issue: str
    value: Optional[str] = None
    message: str


class ValidationResult(BaseModel):
    is_valid: bool = True
    issues: List[ValidationIssue] = Field(default_factory=list)

    @property
    def messages(self) -> List[str]:
        return [i.message for i in self.issues]


class DecodeReport(BaseModel):
    detected: Optional[str] = None
    decode_used: str
    decode_fallback: bool = False
    bom_stripped: bool = False
    newlines_changed: bool = False


class DecodedUpload(BaseModel):
    text: str
    report: DecodeReport


class ExportOptions(BaseModel):
    format: ExportFormat = "omnichat"
    sms_text: Optional[str] = None
    delimiter: Optional[str] = Field(default=None, examples=[";"])
    prefix: Optional[str] = None
    theme: Optional[str] = None
    scheduled_for: Optional[datetime] = None


class ExportResult(BaseModel):
    content: str
    filename: str
    format: ExportFormat
    row_count: int
    byte_size: int
    sms_status: Optional[SmsStatus] = None


class RecentFile(BaseModel):
    id: str
    name: str
    date: datetime
    rows: int
    size: int
    preview: Optional[str] = None


class ExportRecord(BaseModel):
    id: str
    name: str
    type: ExportFormat
    exported_at: datetime
    row_count: int
    theme: Optional[str] = None
    scheduled_for: Optional[datetime] = None


# --- HTTP envelopes ---


class UploadResponse(BaseModel):
    filename: str
    table: Table
    stats: Stats
    validation: ValidationResult
    decoding: DecodeReport


class FilterRequest(BaseModel):
    table: Table
    spec: FilterSpec = Field(default_factory=FilterSpec)


class ExportRequest(BaseModel):
    table: Table
    options: ExportOptions = Field(default_factory=ExportOptions)


class ExportedCsv(BaseModel):
    sha256: str
    encoding: str = Field(default="utf-8")
    content_b64: str


class ExportResponse(BaseModel):
    filename: str
    format: ExportFormat
    row_count: int
    byte_size: int
    sms_status: Optional[SmsStatus] = None
    exported_csv: ExportedCsv
    record: ExportRecord


class SplitRequest(BaseModel):
    table: Table
    max_rows_per_part: int


class SplitResponse(BaseModel):
    parts: List[Table]


class HealthResponse(BaseModel):
    ok: bool = True


class ErrorDetail(BaseModel):
    message: str
    missing_columns: List[str] = Field(default_factory=list)
