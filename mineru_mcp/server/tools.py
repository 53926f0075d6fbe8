"""
MinerU tool handlers and the tool catalog.

This module provides:
- The four tool handlers (parse, status, batch, batch status)
- Tool metadata and JSON Schemas for ``tools/list``
- Argument validation and dispatch by tool name

Handlers are stateless: every status query goes to MinerU, nothing is cached.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from mineru_mcp.framework.errors import NotFoundError, ValidationError
from mineru_mcp.server.formatting import (
    format_concise_batch,
    format_concise_status,
    format_detailed,
)
from mineru_mcp.server.schemas import (
    BatchRequest,
    BatchStatus,
    BatchStatusRequest,
    ParseRequest,
    StatusRequest,
    TaskStatus,
)

logger = logging.getLogger(__name__)

MAX_BATCH_URLS = 200


class RemoteCaller(Protocol):
    """What the handlers need from the MinerU client."""

    async def request(
        self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None
    ) -> Any: ...


@dataclass(frozen=True)
class ToolSpec:
    """Catalog entry: name, description and argument schema of one tool."""

    name: str
    description: str
    request_model: type[BaseModel]

    @property
    def input_schema(self) -> dict[str, Any]:
        return self.request_model.model_json_schema()


TOOL_CATALOG: dict[str, ToolSpec] = {
    spec.name: spec
    for spec in (
        ToolSpec(
            "mineru_parse",
            "Parse a document URL. Returns task_id to check status.",
            ParseRequest,
        ),
        ToolSpec(
            "mineru_status",
            "Check task progress. Returns download URL when done.",
            StatusRequest,
        ),
        ToolSpec(
            "mineru_batch",
            f"Parse multiple URLs in one batch (max {MAX_BATCH_URLS}).",
            BatchRequest,
        ),
        ToolSpec(
            "mineru_batch_status",
            "Get batch results. Supports pagination for large batches.",
            BatchStatusRequest,
        ),
    )
}


def _processing_options(request: ParseRequest | BatchRequest, default_model: str) -> dict[str, Any]:
    """Map shared tool options onto MinerU's request fields."""
    options: dict[str, Any] = {"model_version": request.model or default_model}
    if request.ocr is not None:
        options["is_ocr"] = request.ocr
    if request.formula is not None:
        options["enable_formula"] = request.formula
    if request.table is not None:
        options["enable_table"] = request.table
    if request.language:
        options["language"] = request.language
    if request.formats:
        options["extra_formats"] = list(request.formats)
    return options


class MineruTools:
    """The four MinerU operations exposed as MCP tools."""

    def __init__(self, client: RemoteCaller, default_model: str = "pipeline") -> None:
        self.client = client
        self.default_model = default_model

    async def parse(self, request: ParseRequest) -> str:
        body: dict[str, Any] = {"url": request.url}
        body.update(_processing_options(request, self.default_model))
        if request.pages:
            body["page_ranges"] = request.pages

        result = await self.client.request("/extract/task", "POST", body)
        return f"Task created: {result['task_id']}\nUse mineru_status to check progress."

    async def status(self, request: StatusRequest) -> str:
        data = await self.client.request(f"/extract/task/{request.task_id}")
        status = TaskStatus.model_validate(data)

        if request.format == "detailed":
            return format_detailed(status)
        return format_concise_status(status, task_id=request.task_id)

    async def batch(self, request: BatchRequest) -> str:
        if len(request.urls) > MAX_BATCH_URLS:
            msg = f"Max {MAX_BATCH_URLS} URLs per batch. Split into smaller batches."
            raise ValidationError(msg, field="urls", received=len(request.urls))

        body: dict[str, Any] = {"files": [{"url": url} for url in request.urls]}
        body.update(_processing_options(request, self.default_model))

        result = await self.client.request("/extract/task/batch", "POST", body)
        return (
            f"Batch created: {result['batch_id']}\n"
            f"{len(request.urls)} files queued.\n"
            "Use mineru_batch_status to check progress."
        )

    async def batch_status(self, request: BatchStatusRequest) -> str:
        data = await self.client.request(f"/extract-results/batch/{request.batch_id}")
        batch = BatchStatus.model_validate(data)

        if request.format == "detailed":
            return format_detailed(batch)
        return format_concise_batch(
            batch, request.limit, request.offset, batch_id=request.batch_id
        )

    async def call(self, name: str, arguments: dict[str, Any] | None) -> str:
        """Validate ``arguments`` for tool ``name`` and run it.

        Raises:
            NotFoundError: If no tool has that name
            ValidationError: If the arguments do not match the tool's schema
        """
        spec = TOOL_CATALOG.get(name)
        if spec is None:
            msg = f"Tool '{name}' not found. Available tools: {sorted(TOOL_CATALOG)}"
            raise NotFoundError(msg, resource_type="tool", resource_id=name)

        try:
            request = spec.request_model.model_validate(arguments or {})
        except PydanticValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(loc) for loc in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            msg = f"Invalid arguments for {name}: {problems}"
            raise ValidationError(msg) from e

        handler = {
            "mineru_parse": self.parse,
            "mineru_status": self.status,
            "mineru_batch": self.batch,
            "mineru_batch_status": self.batch_status,
        }[name]
        return await handler(request)
