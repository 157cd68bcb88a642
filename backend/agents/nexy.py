"""
Nexy — the generalist guide. Routes tasks to specialists, reports agent
status, and tracks multi-agent coordinations.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from agents.base import BaseAgent, register_agent_class
from config import TTL_ONE_DAY, TTL_ONE_HOUR

logger = logging.getLogger(__name__)

AGENT_SPECIALTIES = {
    "dev": ["coding", "debugging", "architecture", "performance"],
    "designer": ["ui/ux", "styling", "accessibility", "responsive design"],
    "teacher": ["tutorials", "documentation", "quizzes", "learning paths"],
    "debugger": ["error analysis", "troubleshooting", "performance", "security"],
    "nexy": ["orchestration", "routing", "coordination", "overview"],
}

_TERMINAL_STATUSES = {"completed", "failed"}


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass
class Coordination:
    id: str
    agents: list[str]
    task_plan: str
    parallel: bool = False
    progress: dict[str, dict] = field(default_factory=dict)
    started_at: str = field(default_factory=_now_iso)

    @property
    def finished(self) -> bool:
        return all(p["status"] in _TERMINAL_STATUSES for p in self.progress.values())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agents": list(self.agents),
            "task_plan": self.task_plan,
            "parallel": self.parallel,
            "progress": {a: dict(p) for a, p in self.progress.items()},
            "started_at": self.started_at,
        }


@register_agent_class
class NexyAgent(BaseAgent):
    AGENT_ID = "nexy"

    def __init__(self, definition, backend, memory):
        super().__init__(definition, backend, memory)
        self._coordinations: dict[str, Coordination] = {}

    def tool_handlers(self):
        return {
            "route_task": self.route_task,
            "get_agent_status": self.get_agent_status,
            "coordinate_agents": self.coordinate_agents,
            "summarize_progress": self.summarize_progress,
        }

    # ── Tools ──

    async def route_task(self, task: str, suggested_agent: str,
                         context: Optional[dict] = None) -> dict:
        if suggested_agent not in AGENT_SPECIALTIES:
            return {"success": False, "error": f"Unknown agent: {suggested_agent}"}

        await self.remember(
            self.artifact_key("routing_"),
            {"task": task, "routed_to": suggested_agent, "context": context,
             "timestamp": _now_iso()},
            ttl_seconds=TTL_ONE_DAY,
        )
        return {
            "success": True,
            "routed_to": suggested_agent,
            "message": f"Task routed to {suggested_agent} agent",
            "handoff_context": {
                "original_task": task,
                "routing_agent": self.agent_id,
                **(context or {}),
            },
        }

    async def get_agent_status(self, include_memory: bool = False) -> dict:
        status = {}
        for agent_id, specialties in AGENT_SPECIALTIES.items():
            entry = {
                "available": True,
                "specialties": list(specialties),
                "active_coordinations": sum(
                    1 for c in self._coordinations.values() if agent_id in c.agents
                ),
            }
            if include_memory and self.user_id:
                entry["memory_count"] = len(await self.recall_prefix("", agent_id=agent_id))
            status[agent_id] = entry
        return status

    async def coordinate_agents(self, agents: list[str], task_plan: str,
                                parallel: bool = False) -> dict:
        unknown = [a for a in agents if a not in AGENT_SPECIALTIES]
        if unknown:
            return {"success": False, "error": f"Unknown agents: {', '.join(unknown)}"}
        if not agents:
            return {"success": False, "error": "At least one agent is required"}

        coordination = Coordination(
            id=self.artifact_key("coord_"),
            agents=list(agents),
            task_plan=task_plan,
            parallel=parallel,
            progress={a: {"status": "pending"} for a in agents},
        )
        self._coordinations[coordination.id] = coordination

        await self.remember(
            f"coordination_{coordination.id}",
            {**coordination.to_dict(), "status": "active"},
            ttl_seconds=TTL_ONE_HOUR,
        )
        logger.info("Coordination %s started with %s", coordination.id, ", ".join(agents))
        return {
            "coordination_id": coordination.id,
            "agents": list(agents),
            "task_plan": task_plan,
            "execution_mode": "parallel" if parallel else "sequential",
            "status": "initiated",
            "message": f"Coordination initiated with {len(agents)} agents",
        }

    async def summarize_progress(self, conversation_id: str,
                                 include_details: bool = False) -> dict:
        summary: dict[str, Any] = {
            "conversation_id": conversation_id,
            "timestamp": _now_iso(),
            "active_agents": [],
            "completed_tasks": [],
            "pending_tasks": [],
            "overall_progress": 0.0,
        }

        if self.user_id:
            for record in await self.recall_prefix("coordination_"):
                if record.value.get("status") == "active":
                    summary["active_agents"].extend(record.value.get("agents", []))
                    if include_details:
                        summary["coordination_details"] = record.value
            routings = await self.recall_prefix("routing_")
            summary["total_tasks_routed"] = len(routings)
            if include_details:
                summary["recent_routings"] = [r.value for r in routings[:5]]

        for cid, coordination in self._coordinations.items():
            completed = 0
            for agent_id, progress in coordination.progress.items():
                if progress["status"] == "completed":
                    completed += 1
                    summary["completed_tasks"].append({"agent": agent_id, "coordination": cid})
                elif progress["status"] in ("pending", "in_progress"):
                    summary["pending_tasks"].append({
                        "agent": agent_id, "coordination": cid, "status": progress["status"],
                    })
            summary["overall_progress"] += completed / len(coordination.agents) * 100

        if self._coordinations:
            summary["overall_progress"] /= len(self._coordinations)
        return summary

    # ── Coordination Tracking ──

    def active_coordinations(self) -> list[dict]:
        return [c.to_dict() for c in self._coordinations.values()]

    async def update_coordination_progress(self, coordination_id: str, agent_id: str,
                                           status: str, output: Any = None) -> bool:
        """Record one participant's progress.

        When every participant is completed or failed, the coordination is
        persisted as completed and dropped from the active set.
        """
        coordination = self._coordinations.get(coordination_id)
        if coordination is None or agent_id not in coordination.progress:
            return False

        coordination.progress[agent_id] = {"status": status, "output": output}
        if coordination.finished:
            await self.remember(
                f"coordination_{coordination_id}",
                {**coordination.to_dict(), "status": "completed",
                 "completed_at": _now_iso()},
                ttl_seconds=TTL_ONE_HOUR,
            )
            del self._coordinations[coordination_id]
            logger.info("Coordination %s finished", coordination_id)
        return True
