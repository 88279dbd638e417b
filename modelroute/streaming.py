"""SSE streaming utilities for model pull progress.

Pull progress reaches clients as Server-Sent Events:
- format_sse_event renders one event (name plus JSON payload)
- stream_pull_progress drives adapter.pull_model() and yields progress
  events, then a single done or error event
- create_sse_response hands a generator to Starlette with proxy-safe headers

A client that disconnects abandons the pull: the generator is closed and
the pull task cancelled. The daemon keeps whatever it already downloaded.
"""

import asyncio
import logging
from collections.abc import AsyncGenerator

from pydantic import BaseModel
from starlette.responses import StreamingResponse

from modelroute.providers.base import ProviderAdapter
from modelroute.schemas import ErrorEvent, ProgressEvent, PullDoneEvent

logger = logging.getLogger("modelroute.streaming")


def format_sse_event(event_type: str, data: BaseModel) -> str:
    """Renders one SSE event: ``event: <type>``, then ``data: <json>``, then a blank line."""
    return f"event: {event_type}\ndata: {data.model_dump_json()}\n\n"


def create_sse_response(generator: AsyncGenerator[str, None]) -> StreamingResponse:
    """Streams pre-rendered events as text/event-stream.

    Caching and nginx buffering are disabled so progress lines arrive as
    the daemon emits them.
    """
    return StreamingResponse(
        content=generator,
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "X-Accel-Buffering": "no",
        },
    )


async def stream_pull_progress(
    adapter: ProviderAdapter,
    model_id: str,
    timeout_seconds: float | None = None,
) -> AsyncGenerator[str, None]:
    """Runs adapter.pull_model() and streams its progress as SSE events.

    Yields one "progress" event per status line, then a "done" event with
    ok=True/False. On timeout or an unexpected error, yields a single
    "error" event instead of "done" — once streaming starts the HTTP status
    is already 200, so errors travel in-band.

    Args:
        adapter: The daemon adapter to pull through.
        model_id: Model name with tag.
        timeout_seconds: Wall-clock budget for the whole pull. None = unbounded.

    Yields:
        SSE-formatted strings.
    """
    queue: asyncio.Queue[str | None] = asyncio.Queue()

    async def _run() -> bool:
        try:
            return await adapter.pull_model(model_id, queue.put_nowait)
        finally:
            queue.put_nowait(None)

    task = asyncio.ensure_future(_run())
    try:
        async with asyncio.timeout(timeout_seconds):
            while True:
                status = await queue.get()
                if status is None:
                    break
                yield format_sse_event("progress", ProgressEvent(status=status))
            ok = await task

    except TimeoutError:
        logger.warning("Pull of %s timed out after %.1fs", model_id, timeout_seconds or 0)
        yield format_sse_event(
            "error",
            ErrorEvent(code="PULL_TIMEOUT", message=f"Pulling {model_id} took too long."),
        )
        return

    except Exception as exc:
        logger.warning("Pull of %s errored: %s", model_id, exc)
        yield format_sse_event(
            "error",
            ErrorEvent(code="STREAM_ERROR", message=f"Pulling {model_id} failed unexpectedly."),
        )
        return

    finally:
        if not task.done():
            task.cancel()

    yield format_sse_event("done", PullDoneEvent(model=model_id, ok=ok))
