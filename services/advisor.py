"""Rule-based project advice.

Nothing here touches the database: callers hand in read-only snapshots and
get plain records back. Each rule is an independent check that either
contributes its fixed suggestion or not; rules run in table order and the
result is capped at ``MAX_SUGGESTIONS``.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Iterable, Literal, Sequence

MAX_SUGGESTIONS = 5
SLOW_CYCLE_DAYS = 7
LOW_COMPLETION_PERCENT = 50
URGENT_BACKLOG_LIMIT = 3
SECONDS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True)
class TaskSnapshot:
    id: int
    title: str
    status: str
    priority: str
    created_at: datetime
    updated_at: datetime

    @property
    def is_done(self) -> bool:
        return self.status == "done"

    @property
    def age_days(self) -> float:
        return (self.updated_at - self.created_at).total_seconds() / SECONDS_PER_DAY


@dataclass(frozen=True)
class Suggestion:
    id: str
    title: str
    description: str
    priority: str
    estimated_hours: int
    confidence: float
    reason: str

    def to_dict(self) -> dict[str, object]:
        payload = asdict(self)
        payload["estimatedHours"] = payload.pop("estimated_hours")
        return payload


@dataclass(frozen=True)
class Rule:
    """One row of the rule table.

    ``kind`` selects the check; ``keywords`` is only used by ``name_contains``.
    """

    kind: Literal["incomplete_tasks", "urgent_tasks", "slow_cycle_time", "name_contains"]
    suggestion: Suggestion
    keywords: tuple[str, ...] = ()


RULES: tuple[Rule, ...] = (
    Rule(
        "incomplete_tasks",
        Suggestion(
            id="rec-1",
            title="Complete pending tasks",
            description="Focus on completing existing tasks before starting new ones",
            priority="urgent",
            estimated_hours=2,
            confidence=0.9,
            reason="High number of incomplete tasks detected",
        ),
    ),
    Rule(
        "urgent_tasks",
        Suggestion(
            id="rec-2",
            title="Review high priority items",
            description="Review and update priority levels for better project flow",
            priority="normal",
            estimated_hours=1,
            confidence=0.8,
            reason="Multiple high priority tasks identified",
        ),
    ),
    Rule(
        "slow_cycle_time",
        Suggestion(
            id="rec-3",
            title="Break down complex tasks",
            description="Consider breaking larger tasks into smaller, manageable pieces",
            priority="normal",
            estimated_hours=3,
            confidence=0.7,
            reason="Tasks taking longer than average to complete",
        ),
    ),
    Rule(
        "name_contains",
        Suggestion(
            id="rec-4",
            title="Add responsive design testing",
            description="Ensure website works well on mobile and tablet devices",
            priority="normal",
            estimated_hours=4,
            confidence=0.6,
            reason="Web project detected - common requirement",
        ),
        keywords=("website", "web"),
    ),
    Rule(
        "name_contains",
        Suggestion(
            id="rec-5",
            title="Add API documentation",
            description="Create comprehensive API documentation for developers",
            priority="normal",
            estimated_hours=6,
            confidence=0.7,
            reason="Backend/API project detected - documentation is crucial",
        ),
        keywords=("api", "backend"),
    ),
)


def average_cycle_days(tasks: Iterable[TaskSnapshot]) -> float:
    """Mean created-to-updated time, in days, of the finished tasks."""
    done = [task.age_days for task in tasks if task.is_done]
    if not done:
        return 0.0
    return sum(done) / len(done)


def _rule_applies(rule: Rule, project_name: str, tasks: Sequence[TaskSnapshot]) -> bool:
    if rule.kind == "incomplete_tasks":
        return any(not task.is_done for task in tasks)
    if rule.kind == "urgent_tasks":
        return any(task.priority == "urgent" for task in tasks)
    if rule.kind == "slow_cycle_time":
        return average_cycle_days(tasks) > SLOW_CYCLE_DAYS
    if rule.kind == "name_contains":
        lowered = project_name.lower()
        return any(keyword in lowered for keyword in rule.keywords)
    raise ValueError(f"Unknown rule kind: {rule.kind}")


def recommend(
    project_name: str,
    tasks: Sequence[TaskSnapshot],
    rules: Sequence[Rule] = RULES,
) -> list[Suggestion]:
    """Return up to ``MAX_SUGGESTIONS`` suggestions in rule order."""
    suggestions = [rule.suggestion for rule in rules if _rule_applies(rule, project_name or "", tasks)]
    return suggestions[:MAX_SUGGESTIONS]


def insights(project_id: int, project_name: str, tasks: Sequence[TaskSnapshot]) -> dict[str, object]:
    """Completion and duration figures plus next-step hints for a project."""
    total = len(tasks)
    completed = sum(1 for task in tasks if task.is_done)
    completion_rate = (completed / total) * 100 if total else 0.0
    average_duration = sum(task.age_days for task in tasks) / total if total else 0.0
    urgent = sum(1 for task in tasks if task.priority == "urgent")

    next_steps: list[str] = []
    if completion_rate < LOW_COMPLETION_PERCENT:
        next_steps.append("Focus on completing existing tasks before adding new ones")
    if average_duration > SLOW_CYCLE_DAYS:
        next_steps.append("Consider breaking down larger tasks into smaller pieces")
    if urgent > URGENT_BACKLOG_LIMIT:
        next_steps.append("Review and prioritize urgent tasks")
    if not next_steps:
        next_steps.append("Project is progressing well - continue current approach")

    return {
        "projectId": project_id,
        "projectName": project_name,
        "totalTasks": total,
        "completedTasks": completed,
        "completionRate": round(completion_rate, 2),
        "averageTaskDuration": round(average_duration, 2),
        "recommendedNextSteps": next_steps,
    }


def rank_assignees(workloads: Iterable[tuple[dict, int]], limit: int = 3) -> list[dict]:
    """Order ``(user_summary, open_task_count)`` pairs by lightest workload."""
    ranked = sorted(workloads, key=lambda item: (item[1], str(item[0].get("name") or "")))
    return [dict(user, workload=count) for user, count in ranked[:limit]]


__all__ = [
    "MAX_SUGGESTIONS",
    "RULES",
    "Rule",
    "Suggestion",
    "TaskSnapshot",
    "average_cycle_days",
    "insights",
    "rank_assignees",
    "recommend",
]
