"""Single-shot query answering for when streaming is switched off."""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..logging_config import get_logger
from ..models import IQueryProcessor
from .session import new_id

logger = get_logger(__name__)


@dataclass
class FallbackResponse:
    """Status code and JSON body of a non-streaming answer."""

    status_code: int
    body: dict[str, Any]


def _elapsed_ms(started: float) -> int:
    return round((time.perf_counter() - started) * 1000)


def _result_fields(result: Any) -> dict[str, Any]:
    if isinstance(result, Mapping):
        return dict(result)
    return result.to_dict()


async def run_single_shot(
    processor: IQueryProcessor,
    question: str,
    request_id: str | None = None,
) -> FallbackResponse:
    """Answer the question in one call, without hooks or events."""
    request_id = request_id or new_id()
    started = time.perf_counter()

    try:
        result = await processor.process_query(question, request_id)
        fields = _result_fields(result)
    except Exception as e:
        logger.error(
            "Query %s failed: %s",
            request_id,
            e,
            exc_info=True,
            extra={"run_id": request_id},
        )
        return FallbackResponse(
            status_code=500,
            body={
                "error": "Internal server error",
                "details": str(e) or "Unknown error",
                "performance": {"totalTime": _elapsed_ms(started)},
            },
        )

    return FallbackResponse(
        status_code=200,
        body={
            "id": request_id,
            "question": question,
            **fields,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "performance": {"totalTime": _elapsed_ms(started)},
        },
    )
