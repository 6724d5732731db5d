"""
Task scheduling and conflict resolution for a single day plan.

Every function here is pure: it takes the stored plan, computes a brand new
task list and either returns it or raises. The input plan and its tasks are
never modified, so a rejected mutation needs no rollback; the caller simply
does not save.

Invariants of every returned list:
- each task lies within [day_start_time, day_end_time]
- tasks are sorted by start time
- ``order`` equals the task's index

Insert and update never introduce an overlap. Completing a task early pulls
the later tasks back to its actual end while the completed task keeps its
planned end, so the list it returns can overlap that task. Later updates
tolerate such overlaps as long as the edit does not deepen them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from app.core.exceptions import (
    CascadeOverflowError,
    DayOverflowError,
    OutOfDayBoundsError,
    ScheduleConflictError,
    TaskNotFoundError,
    ValidationError,
)
from app.models.plan import Plan, PlanTask, TaskCreate, TaskUpdate
from app.utils.datetime_utils import to_minutes, to_time_string

DEFAULT_MAX_ITERATION_FACTOR = 2


@dataclass(eq=False)
class _Block:
    """Working copy of a task with its times in minutes."""

    task: PlanTask
    start: int
    end: int
    is_new: bool = False

    @property
    def duration(self) -> int:
        return self.end - self.start


def _to_blocks(tasks: list[PlanTask]) -> list[_Block]:
    return [
        _Block(task=task, start=to_minutes(task.start_time), end=to_minutes(task.end_time))
        for task in tasks
    ]


def _to_tasks(blocks: list[_Block]) -> list[PlanTask]:
    return [
        block.task.model_copy(
            update={
                "start_time": to_time_string(block.start),
                "end_time": to_time_string(block.end),
                "order": index,
            }
        )
        for index, block in enumerate(blocks)
    ]


def _day_window(plan: Plan) -> tuple[int, int]:
    return to_minutes(plan.day_start_time), to_minutes(plan.day_end_time)


def _find_index(tasks: list[PlanTask], task_id: UUID) -> int:
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return index
    raise TaskNotFoundError(f"Task {task_id} not found", details={"task_id": str(task_id)})


def _check_task_times(plan: Plan, start: int, end: int) -> None:
    """Reject times that are inverted or fall outside the day window."""
    day_start, day_end = _day_window(plan)
    if end <= start:
        raise ValidationError(
            "End time must be after start time",
            details={"start_time": to_time_string(start), "end_time": to_time_string(end)},
        )
    if start < day_start:
        raise OutOfDayBoundsError(
            f"Task start time ({to_time_string(start)}) cannot be before "
            f"day start time ({plan.day_start_time})",
            details={"start_time": to_time_string(start), "day_start_time": plan.day_start_time},
        )
    if end > day_end:
        raise OutOfDayBoundsError(
            f"Task end time ({to_time_string(end)}) cannot exceed "
            f"day end time ({plan.day_end_time})",
            details={"end_time": to_time_string(end), "day_end_time": plan.day_end_time},
        )


def _shift(block: _Block, delta: int, plan: Plan, action: str) -> None:
    """Move a block by delta minutes, keeping it inside the day window."""
    day_start, day_end = _day_window(plan)
    new_start = block.start + delta
    new_end = block.end + delta
    if new_start < day_start or new_end > day_end:
        raise CascadeOverflowError(
            f"Cannot {action}: cascading changes would push task '{block.task.name}' "
            f"outside day boundaries ({plan.day_start_time} - {plan.day_end_time})",
            task_name=block.task.name,
            details={"task_id": str(block.task.id), "delta_minutes": delta},
        )
    block.start = new_start
    block.end = new_end


def _ensure_no_overlap(blocks: list[_Block]) -> None:
    for current, following in zip(blocks, blocks[1:]):
        if current.end > following.start:
            raise ScheduleConflictError(
                f"Task '{following.task.name}' would overlap task '{current.task.name}'",
                details={
                    "task_ids": [str(current.task.id), str(following.task.id)],
                },
            )


def _overlap(first: tuple[int, int], second: tuple[int, int]) -> int:
    """Minutes by which ``first`` runs into ``second``; 0 if ``second`` starts first."""
    if second[0] < first[0]:
        return 0
    return max(0, first[1] - second[0])


def _ensure_edit_fits(
    blocks: list[_Block],
    target: _Block,
    before: dict[_Block, tuple[int, int]],
) -> None:
    """Reject an edited task that runs into a neighbour further than it did before."""
    position = blocks.index(target)
    pairs = []
    if position > 0:
        pairs.append((blocks[position - 1], target))
    if position + 1 < len(blocks):
        pairs.append((target, blocks[position + 1]))

    for current, following in pairs:
        overlap = _overlap((current.start, current.end), (following.start, following.end))
        if overlap > _overlap(before[current], before[following]):
            raise ScheduleConflictError(
                f"Task '{following.task.name}' would overlap task '{current.task.name}'",
                details={
                    "task_ids": [str(current.task.id), str(following.task.id)],
                },
            )


def insert_task(
    plan: Plan,
    new_task: TaskCreate,
    max_iteration_factor: int = DEFAULT_MAX_ITERATION_FACTOR,
) -> list[PlanTask]:
    """
    Add a task and push later tasks forward until nothing overlaps.

    The new task wins ties: it sorts before existing tasks with the same
    start time, so those are the ones that move.

    Args:
        plan: Stored plan (not modified)
        new_task: Task to insert
        max_iteration_factor: Overlap passes are capped at factor * task count

    Returns:
        New sorted task list including the inserted task

    Raises:
        ValidationError: End time not after start time
        OutOfDayBoundsError: New task outside the day window
        DayOverflowError: Making room would push a task past the day end
        ScheduleConflictError: Overlaps remain after the pass cap
    """
    start = to_minutes(new_task.start_time)
    end = to_minutes(new_task.end_time)
    _check_task_times(plan, start, end)
    _, day_end = _day_window(plan)

    inserted = PlanTask(
        name=new_task.name,
        start_time=new_task.start_time,
        end_time=new_task.end_time,
        category=new_task.category,
        order=len(plan.tasks),
    )
    blocks = _to_blocks(plan.tasks)
    blocks.append(_Block(task=inserted, start=start, end=end, is_new=True))
    blocks.sort(key=lambda block: (block.start, not block.is_new))

    max_passes = max_iteration_factor * len(blocks)
    passes = 0
    has_conflicts = True
    while has_conflicts and passes < max_passes:
        has_conflicts = False
        passes += 1
        for current, following in zip(blocks, blocks[1:]):
            if current.end <= following.start:
                continue
            has_conflicts = True
            shifted_end = current.end + following.duration
            if shifted_end > day_end:
                raise DayOverflowError(
                    "Cannot add task: total duration would exceed "
                    f"day end time ({plan.day_end_time})",
                    details={
                        "task_name": following.task.name,
                        "day_end_time": plan.day_end_time,
                    },
                )
            following.start, following.end = current.end, shifted_end
        if has_conflicts:
            blocks.sort(key=lambda block: block.start)

    _ensure_no_overlap(blocks)
    return _to_tasks(blocks)


def update_task(plan: Plan, task_id: UUID, changes: TaskUpdate) -> list[PlanTask]:
    """
    Edit a task and ripple time changes through the rest of the day.

    Tasks after the edited one move by the change in its end time; tasks
    before it move by the change in its start time. Name and category edits
    never move anything. Overlaps already in the plan, such as those left by
    an early completion, are kept as long as the edit does not deepen them.

    Raises:
        TaskNotFoundError: Unknown task_id
        ValidationError: Inverted times
        OutOfDayBoundsError: New times outside the day window
        CascadeOverflowError: A shifted task would leave the day window
        ScheduleConflictError: The edited task would overlap a neighbour
    """
    index = _find_index(plan.tasks, task_id)
    blocks = _to_blocks(plan.tasks)
    target = blocks[index]

    fields: dict = {}
    if changes.name is not None:
        fields["name"] = changes.name
    if changes.category is not None:
        fields["category"] = changes.category
    if fields:
        target.task = target.task.model_copy(update=fields)

    if changes.start_time is None and changes.end_time is None:
        return _to_tasks(blocks)

    new_start = to_minutes(changes.start_time) if changes.start_time is not None else target.start
    new_end = to_minutes(changes.end_time) if changes.end_time is not None else target.end
    _check_task_times(plan, new_start, new_end)

    before = {block: (block.start, block.end) for block in blocks}
    start_delta = new_start - target.start
    end_delta = new_end - target.end
    target.start, target.end = new_start, new_end

    blocks.sort(key=lambda block: block.start)
    position = next(i for i, block in enumerate(blocks) if block is target)

    for block in blocks[position + 1:]:
        _shift(block, end_delta, plan, "update")
    for block in reversed(blocks[:position]):
        _shift(block, start_delta, plan, "update")

    blocks.sort(key=lambda block: block.start)
    _ensure_edit_fits(blocks, target, before)
    return _to_tasks(blocks)


def complete_task(
    plan: Plan,
    task_id: UUID,
    actual_end_time: Optional[str] = None,
) -> list[PlanTask]:
    """
    Mark a task done and apply the domino effect of finishing early or late.

    When ``actual_end_time`` differs from the planned end, every later task
    moves by the signed difference. Shifted tasks must stay inside the day
    window; the completed task's own actual end may run past it.

    Completing an already completed task returns the tasks unchanged.

    Raises:
        TaskNotFoundError: Unknown task_id
        ValidationError: Actual end time not after the task's start
        CascadeOverflowError: A shifted task would leave the day window
    """
    index = _find_index(plan.tasks, task_id)
    if plan.tasks[index].is_completed:
        return list(plan.tasks)

    blocks = _to_blocks(plan.tasks)
    target = blocks[index]
    fields: dict = {"is_completed": True}

    if actual_end_time is not None and actual_end_time != target.task.end_time:
        actual_end = to_minutes(actual_end_time)
        if actual_end <= target.start:
            raise ValidationError(
                "Actual end time must be after the task's start time",
                details={"start_time": target.task.start_time, "actual_end_time": actual_end_time},
            )
        delay = actual_end - target.end
        fields["actual_end_time"] = actual_end_time
        for block in blocks[index + 1:]:
            _shift(block, delay, plan, "complete task")

    target.task = target.task.model_copy(update=fields)
    return _to_tasks(blocks)


def delete_task(plan: Plan, task_id: UUID) -> list[PlanTask]:
    """Remove a task. Remaining tasks keep their times and are renumbered."""
    index = _find_index(plan.tasks, task_id)
    remaining = [task for i, task in enumerate(plan.tasks) if i != index]
    return [task.model_copy(update={"order": i}) for i, task in enumerate(remaining)]
