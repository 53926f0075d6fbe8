"""Text rendering of task and batch status for MCP tool results."""

import json
from collections.abc import Sequence
from typing import Any, TypeVar

from pydantic import BaseModel

from mineru_mcp.server.schemas import BatchStatus, ExtractProgress, TaskStatus

T = TypeVar("T")


def paginate(items: Sequence[T], limit: int, offset: int) -> tuple[list[T], int | None]:
    """Return the ``[offset, offset+limit)`` window and the next offset.

    The window is clamped to ``[0, len(items)]``; a negative offset reads from
    the start. The next offset is None when nothing follows the window.
    """
    total = len(items)
    offset = max(offset, 0)
    start = min(offset, total)
    end = min(offset + limit, total)
    next_offset = offset + limit if offset + limit < total else None
    return list(items[start:end]), next_offset


def _pages(progress: ExtractProgress) -> str:
    return f"{progress.extracted_pages}/{progress.total_pages}"


def format_concise_status(status: TaskStatus, task_id: str | None = None) -> str:
    """Render ``<state> | <task_id>[ | <extra>]``.

    ``task_id`` is used when the record itself does not carry one.
    """
    parts = [status.state, status.task_id or task_id or ""]
    if status.state == "done" and status.full_zip_url:
        parts.append(status.full_zip_url)
    elif status.state == "running" and status.extract_progress:
        parts.append(f"{_pages(status.extract_progress)} pages")
    elif status.state == "failed" and status.err_msg:
        parts.append(status.err_msg)
    return " | ".join(parts)


def format_detailed(record: BaseModel) -> str:
    """Full structured dump of a status record, as returned by MinerU."""
    data: Any = record.model_dump(mode="json", exclude_unset=True)
    return json.dumps(data, indent=2, ensure_ascii=False)


def format_concise_batch(
    batch: BatchStatus, limit: int, offset: int, batch_id: str | None = None
) -> str:
    """Render one page of a batch with a continuation hint."""
    results = batch.extract_result
    total = len(results)
    done = sum(1 for r in results if r.state == "done")
    page, next_offset = paginate(results, limit, offset)

    lines = [f"Batch {batch.batch_id or batch_id}: {done}/{total} done"]
    for r in page:
        line = f"- {r.file_name}: {r.state}"
        if r.state == "done" and r.full_zip_url:
            line += f" {r.full_zip_url}"
        elif r.state == "running" and r.extract_progress:
            line += f" ({_pages(r.extract_progress)})"
        lines.append(line)

    if next_offset is not None:
        lines.append(f"[+{total - next_offset} more, use offset={next_offset}]")

    return "\n".join(lines)
