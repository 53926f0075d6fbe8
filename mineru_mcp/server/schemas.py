"""Request and response schemas for the MinerU tools.

Tool arguments are validated with these Pydantic models before any remote call,
and their JSON Schemas are what ``tools/list`` advertises to MCP clients.
Response models describe the ``data`` member of MinerU's envelopes; unknown
fields are kept so the detailed output shows the full record.

Example:
    from mineru_mcp.server.schemas import ParseRequest

    request = ParseRequest(url="https://example.com/paper.pdf", model="vlm")
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ModelVersion = Literal["pipeline", "vlm"]
ExtraFormat = Literal["docx", "html", "latex"]
OutputFormat = Literal["concise", "detailed"]

# =============================================================================
# Tool Request Schemas
# =============================================================================


class _ToolRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")


class ParseRequest(_ToolRequest):
    """Arguments for mineru_parse."""

    url: str = Field(..., min_length=1, description="Document URL (PDF, DOC, PPT, images)")
    model: ModelVersion | None = Field(default=None, description="pipeline=fast, vlm=90% accuracy")
    pages: str | None = Field(default=None, description="Page range: 1-10,15 or 2--2")
    ocr: bool | None = Field(default=None, description="Enable OCR (pipeline only)")
    formula: bool | None = Field(default=None, description="Formula recognition")
    table: bool | None = Field(default=None, description="Table recognition")
    language: str | None = Field(default=None, description="Language code: ch, en, etc")
    formats: list[ExtraFormat] | None = Field(default=None, description="Extra export formats")


class StatusRequest(_ToolRequest):
    """Arguments for mineru_status."""

    task_id: str = Field(..., min_length=1, description="Task ID from mineru_parse")
    format: OutputFormat = Field(default="concise", description="Output format")


class BatchRequest(_ToolRequest):
    """Arguments for mineru_batch.

    The 200-URL ceiling is enforced by the handler, not the schema, so the
    caller gets the actionable "split into smaller batches" message.
    """

    urls: list[str] = Field(..., description="Array of document URLs")
    model: ModelVersion | None = Field(default=None, description="pipeline=fast, vlm=90% accuracy")
    ocr: bool | None = Field(default=None, description="Enable OCR (pipeline only)")
    formula: bool | None = Field(default=None, description="Formula recognition")
    table: bool | None = Field(default=None, description="Table recognition")
    language: str | None = Field(default=None, description="Language code: ch, en, etc")
    formats: list[ExtraFormat] | None = Field(default=None, description="Extra export formats")


class BatchStatusRequest(_ToolRequest):
    """Arguments for mineru_batch_status."""

    batch_id: str = Field(..., min_length=1, description="Batch ID from mineru_batch")
    limit: int = Field(default=10, ge=1, description="Max results to return")
    offset: int = Field(default=0, description="Skip first N results")
    format: OutputFormat = Field(default="concise", description="Output format")


# =============================================================================
# MinerU Response Schemas
# =============================================================================


class ExtractProgress(BaseModel):
    """Page progress of a running extraction."""

    model_config = ConfigDict(extra="allow")

    extracted_pages: int
    total_pages: int
    start_time: str | None = None


class TaskStatus(BaseModel):
    """State of one parse task (GET /extract/task/{task_id})."""

    model_config = ConfigDict(extra="allow")

    task_id: str | None = None
    state: str
    data_id: str | None = None
    full_zip_url: str | None = None
    err_msg: str | None = None
    extract_progress: ExtractProgress | None = None


class BatchFileResult(BaseModel):
    """State of one file inside a batch."""

    model_config = ConfigDict(extra="allow")

    file_name: str
    state: str
    data_id: str | None = None
    full_zip_url: str | None = None
    err_msg: str | None = None
    extract_progress: ExtractProgress | None = None


class BatchStatus(BaseModel):
    """Results of a batch (GET /extract-results/batch/{batch_id}), in service order."""

    model_config = ConfigDict(extra="allow")

    batch_id: str | None = None
    extract_result: list[BatchFileResult] = Field(default_factory=list)


__all__ = [
    "BatchFileResult",
    "BatchRequest",
    "BatchStatus",
    "BatchStatusRequest",
    "ExtractProgress",
    "ParseRequest",
    "StatusRequest",
    "TaskStatus",
]
