"""
Tool execution loop — resolves the tool calls of one model response.

Flat two-step protocol: execute every requested tool, then send all
results back to the model in a single follow-up completion whose text is
the turn's final answer. The follow-up is never allowed to trigger another
round of tools.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any

from inference.base import (
    CompletionResponse,
    ToolCall,
    ToolResult,
    serialize_tool_results,
)

logger = logging.getLogger(__name__)


@dataclass
class ToolLoopOutcome:
    content: str
    tools_used: list[str] = field(default_factory=list)
    results: list[ToolResult] = field(default_factory=list)


def _serialize(output: Any) -> str:
    try:
        return json.dumps(output, default=str)
    except (TypeError, ValueError):
        return json.dumps({"result": str(output)})


def _error_result(call: ToolCall, message: str) -> ToolResult:
    return ToolResult(call.id, json.dumps({"error": message}), is_error=True)


async def execute_tool_requests(agent, calls: list[ToolCall]) -> list[ToolResult]:
    """Execute each call against the agent's tool table, in request order.

    A failing tool becomes an error-shaped result; it never aborts the batch.
    """
    results = []
    for call in calls:
        if call.parse_error:
            results.append(_error_result(call, call.parse_error))
            continue
        try:
            output = await agent.execute_tool(call.name, call.input)
        except Exception as e:
            logger.warning("Tool %s failed for %s: %s", call.name, agent.agent_id, e)
            results.append(_error_result(call, f"Tool {call.name} failed: {e}"))
            continue
        is_error = isinstance(output, dict) and "error" in output
        results.append(ToolResult(call.id, _serialize(output), is_error=is_error))
    return results


async def run_tool_loop(agent, response: CompletionResponse,
                        conversation_id: str) -> ToolLoopOutcome:
    """Run the requested tools and return the model's answer to their results."""
    tools_used = [c.name for c in response.tool_calls]
    logger.info("%s running tools: %s", agent.agent_id, ", ".join(tools_used))

    results = await execute_tool_requests(agent, response.tool_calls)
    followup = await agent.backend.send_message(
        serialize_tool_results(results), conversation_id, tool_results=results
    )
    if followup.wants_tools:
        logger.info("Ignoring %d tool requests in follow-up for %s",
                    len(followup.tool_calls), agent.agent_id)

    content = followup.content or response.content
    if not content.strip():
        content = f"Completed tool calls: {', '.join(tools_used)}."
    return ToolLoopOutcome(content=content, tools_used=tools_used, results=results)
