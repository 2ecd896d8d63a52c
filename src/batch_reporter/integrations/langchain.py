"""LangChain callback integration for the batch reporter.

Provides :class:`BatchReportingCallbackHandler`, a LangChain callback handler
that turns model, chain and tool lifecycle callbacks into telemetry events
and enqueues them on a :class:`BatchReporter`, so a run with many steps
produces a handful of sink calls instead of one per callback.

Example::

    from batch_reporter import start
    from batch_reporter.integrations.langchain import BatchReportingCallbackHandler

    reporter = start(write_points, batch_time=1.0, name="langchain")
    handler = BatchReportingCallbackHandler(reporter)

    chain.invoke({"question": "..."}, config={"callbacks": [handler]})
"""

from __future__ import annotations

import time
from typing import TYPE_CHECKING, Any

from langchain_core.callbacks import BaseCallbackHandler

if TYPE_CHECKING:
    from uuid import UUID

    from langchain_core.outputs import LLMResult

    from batch_reporter.core import BatchReporter


def _run_name(serialized: dict[str, Any] | None, kwargs: dict[str, Any]) -> str | None:
    if kwargs.get("name"):
        return kwargs["name"]
    if serialized:
        return serialized.get("name") or (serialized.get("id") or [None])[-1]
    return None


class BatchReportingCallbackHandler(BaseCallbackHandler):
    """LangChain callback handler that reports run events in batches.

    Every callback becomes a ``dict`` with at least ``event``, ``run_id``,
    ``parent_run_id`` and ``timestamp`` keys. Callbacks may fire from worker
    threads; :meth:`BatchReporter.enqueue` hands them to the reporter's loop.

    Args:
        reporter: Reporter that receives the events.
        include_payloads: Whether to add prompts, inputs and outputs to the
            events. Off by default since they can be large or sensitive.
    """

    def __init__(self, reporter: BatchReporter, *, include_payloads: bool = False) -> None:
        self._reporter = reporter
        self._include_payloads = include_payloads

    @property
    def reporter(self) -> BatchReporter:
        """Access the underlying :class:`BatchReporter` instance."""
        return self._reporter

    def _emit(self, event: str, run_id: UUID, parent_run_id: UUID | None, **fields: Any) -> None:
        self._reporter.enqueue(
            {
                "event": event,
                "run_id": str(run_id),
                "parent_run_id": str(parent_run_id) if parent_run_id else None,
                "timestamp": time.time(),
                **fields,
            }
        )

    def on_llm_start(
        self,
        serialized: dict[str, Any],
        prompts: list[str],
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        tags: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        fields: dict[str, Any] = {"name": _run_name(serialized, kwargs), "tags": tags or []}
        if self._include_payloads:
            fields["prompts"] = list(prompts)
        self._emit("llm_start", run_id, parent_run_id, **fields)

    def on_llm_end(
        self,
        response: LLMResult,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        llm_output = response.llm_output or {}
        self._emit(
            "llm_end",
            run_id,
            parent_run_id,
            generations=sum(len(g) for g in response.generations),
            token_usage=llm_output.get("token_usage"),
        )

    def on_llm_error(
        self,
        error: BaseException,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        self._emit("llm_error", run_id, parent_run_id, error=repr(error))

    def on_chain_start(
        self,
        serialized: dict[str, Any],
        inputs: dict[str, Any],
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        tags: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        fields: dict[str, Any] = {"name": _run_name(serialized, kwargs), "tags": tags or []}
        if self._include_payloads:
            fields["inputs"] = inputs
        self._emit("chain_start", run_id, parent_run_id, **fields)

    def on_chain_end(
        self,
        outputs: dict[str, Any],
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        fields: dict[str, Any] = {}
        if self._include_payloads:
            fields["outputs"] = outputs
        self._emit("chain_end", run_id, parent_run_id, **fields)

    def on_chain_error(
        self,
        error: BaseException,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        self._emit("chain_error", run_id, parent_run_id, error=repr(error))

    def on_tool_start(
        self,
        serialized: dict[str, Any],
        input_str: str,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        tags: list[str] | None = None,
        **kwargs: Any,
    ) -> None:
        fields: dict[str, Any] = {"name": _run_name(serialized, kwargs), "tags": tags or []}
        if self._include_payloads:
            fields["input"] = input_str
        self._emit("tool_start", run_id, parent_run_id, **fields)

    def on_tool_end(
        self,
        output: Any,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        fields: dict[str, Any] = {}
        if self._include_payloads:
            fields["output"] = str(output)
        self._emit("tool_end", run_id, parent_run_id, **fields)

    def on_tool_error(
        self,
        error: BaseException,
        *,
        run_id: UUID,
        parent_run_id: UUID | None = None,
        **kwargs: Any,
    ) -> None:
        self._emit("tool_error", run_id, parent_run_id, error=repr(error))

    async def close(self, *, flush: bool = True) -> None:
        """Shut down the underlying reporter."""
        await self._reporter.close(flush=flush)
