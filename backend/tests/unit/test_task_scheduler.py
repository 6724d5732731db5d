"""
Unit tests for the task scheduler.
"""

import random
from datetime import date, datetime, timezone
from uuid import uuid4

import pytest

from app.core.exceptions import (
    CascadeOverflowError,
    DayOverflowError,
    OutOfDayBoundsError,
    ScheduleConflictError,
    SchedulingError,
    TaskNotFoundError,
    ValidationError,
)
from app.models.enums import TaskCategory
from app.models.plan import Plan, PlanTask, TaskCreate, TaskUpdate
from app.services import task_scheduler
from app.utils.datetime_utils import to_minutes


def _plan(
    *tasks: tuple[str, str, str],
    day_start: str = "06:00",
    day_end: str = "23:00",
) -> Plan:
    now = datetime(2026, 3, 2, 5, 0, tzinfo=timezone.utc)
    return Plan(
        id=uuid4(),
        user_id="test_user",
        plan_date=date(2026, 3, 2),
        day_start_time=day_start,
        day_end_time=day_end,
        tasks=[
            PlanTask(
                name=name,
                start_time=start,
                end_time=end,
                category=TaskCategory.PRODUCTIVE,
                order=index,
            )
            for index, (name, start, end) in enumerate(tasks)
        ],
        version=1,
        created_at=now,
        updated_at=now,
    )


def _with_tasks(plan: Plan, tasks: list[PlanTask]) -> Plan:
    return plan.model_copy(update={"tasks": tasks})


def _times(tasks: list[PlanTask]) -> list[tuple[str, str, str]]:
    return [(task.name, task.start_time, task.end_time) for task in tasks]


def _by_name(tasks: list[PlanTask], name: str) -> PlanTask:
    return next(task for task in tasks if task.name == name)


def _assert_timeline(plan: Plan, tasks: list[PlanTask]) -> None:
    day_start = to_minutes(plan.day_start_time)
    day_end = to_minutes(plan.day_end_time)
    for index, task in enumerate(tasks):
        assert task.order == index
        assert day_start <= to_minutes(task.start_time)
        assert to_minutes(task.end_time) <= day_end
        assert to_minutes(task.start_time) < to_minutes(task.end_time)
    for current, following in zip(tasks, tasks[1:]):
        assert to_minutes(current.end_time) <= to_minutes(following.start_time)


def _new(name: str, start: str, end: str, category: TaskCategory = TaskCategory.PRODUCTIVE) -> TaskCreate:
    return TaskCreate(name=name, start_time=start, end_time=end, category=category)


# ===========================================
# insert_task
# ===========================================


def test_insert_shifts_overlapping_task_and_keeps_duration():
    plan = _plan()
    tasks = task_scheduler.insert_task(plan, _new("Task1", "09:00", "10:00"))
    plan = _with_tasks(plan, tasks)

    tasks = task_scheduler.insert_task(
        plan, _new("Task2", "09:30", "10:30", TaskCategory.LEISURE)
    )

    assert _times(tasks) == [
        ("Task1", "09:00", "10:00"),
        ("Task2", "10:00", "11:00"),
    ]
    assert tasks[1].category == TaskCategory.LEISURE
    _assert_timeline(plan, tasks)


def test_insert_new_task_wins_start_time_tie():
    plan = _plan(("Existing", "09:00", "10:00"))

    tasks = task_scheduler.insert_task(plan, _new("New", "09:00", "09:30"))

    assert _times(tasks) == [
        ("New", "09:00", "09:30"),
        ("Existing", "09:30", "10:30"),
    ]


def test_insert_pushes_a_chain_of_tasks_forward():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
        ("C", "11:00", "12:00"),
    )

    tasks = task_scheduler.insert_task(plan, _new("N", "09:30", "10:00"))

    assert _times(tasks) == [
        ("A", "09:00", "10:00"),
        ("N", "10:00", "10:30"),
        ("B", "10:30", "11:30"),
        ("C", "11:30", "12:30"),
    ]
    _assert_timeline(plan, tasks)


def test_insert_without_conflict_adds_task_in_sorted_position():
    plan = _plan(
        ("Morning", "07:00", "08:00"),
        ("Evening", "18:00", "19:00"),
    )

    tasks = task_scheduler.insert_task(plan, _new("Lunch", "12:00", "13:00"))

    assert _times(tasks) == [
        ("Morning", "07:00", "08:00"),
        ("Lunch", "12:00", "13:00"),
        ("Evening", "18:00", "19:00"),
    ]
    assert tasks[0].id == plan.tasks[0].id
    assert tasks[2].id == plan.tasks[1].id
    assert tasks[1].is_completed is False
    assert tasks[1].actual_end_time is None


def test_insert_ending_exactly_at_day_end_succeeds():
    plan = _plan()

    tasks = task_scheduler.insert_task(plan, _new("Late", "22:00", "23:00"))

    assert _times(tasks) == [("Late", "22:00", "23:00")]


def test_insert_ending_one_minute_after_day_end_is_rejected():
    plan = _plan()

    with pytest.raises(DayOverflowError):
        task_scheduler.insert_task(plan, _new("Late", "22:00", "23:01"))


def test_insert_before_day_start_is_rejected():
    plan = _plan()

    with pytest.raises(OutOfDayBoundsError) as error:
        task_scheduler.insert_task(plan, _new("Early", "05:30", "06:30"))

    assert isinstance(error.value, ValidationError)
    assert "06:00" in error.value.message


def test_insert_rejects_end_not_after_start():
    plan = _plan()

    with pytest.raises(ValidationError):
        task_scheduler.insert_task(plan, _new("Backwards", "10:00", "10:00"))


def test_insert_rejects_when_shifting_overflows_day_and_leaves_plan_untouched():
    plan = _plan(
        ("A", "10:00", "11:00"),
        ("B", "11:00", "12:00"),
        day_end="12:00",
    )
    before = [task.model_copy() for task in plan.tasks]

    with pytest.raises(DayOverflowError) as error:
        task_scheduler.insert_task(plan, _new("N", "10:00", "10:30"))

    assert "12:00" in error.value.message
    assert plan.tasks == before


def test_insert_many_tasks_keeps_invariants():
    rng = random.Random(7)
    plan = _plan()
    for index in range(40):
        start = rng.randrange(6 * 60, 22 * 60, 15)
        duration = rng.choice([15, 30, 45, 60, 90])
        new_task = _new(
            f"T{index}",
            f"{start // 60:02d}:{start % 60:02d}",
            f"{(start + duration) // 60:02d}:{(start + duration) % 60:02d}",
        )
        try:
            tasks = task_scheduler.insert_task(plan, new_task)
        except (SchedulingError, ValidationError):
            continue
        _assert_timeline(plan, tasks)
        assert len(tasks) == len(plan.tasks) + 1
        plan = _with_tasks(plan, tasks)


# ===========================================
# update_task
# ===========================================


def test_update_end_time_cascades_forward():
    plan = _plan(
        ("Task1", "09:00", "10:00"),
        ("Task2", "10:00", "11:00"),
    )

    tasks = task_scheduler.update_task(
        plan, plan.tasks[0].id, TaskUpdate(end_time="10:30")
    )

    assert _times(tasks) == [
        ("Task1", "09:00", "10:30"),
        ("Task2", "10:30", "11:30"),
    ]
    _assert_timeline(plan, tasks)


def test_update_start_time_cascades_backward():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )

    tasks = task_scheduler.update_task(
        plan, plan.tasks[1].id, TaskUpdate(start_time="09:30")
    )

    assert _times(tasks) == [
        ("A", "08:30", "09:30"),
        ("B", "09:30", "11:00"),
    ]


def test_update_moving_whole_task_shifts_both_directions():
    plan = _plan(
        ("A", "08:00", "09:00"),
        ("B", "09:00", "10:00"),
        ("C", "10:00", "11:00"),
    )

    tasks = task_scheduler.update_task(
        plan, plan.tasks[1].id, TaskUpdate(start_time="09:30", end_time="10:30")
    )

    assert _times(tasks) == [
        ("A", "08:30", "09:30"),
        ("B", "09:30", "10:30"),
        ("C", "10:30", "11:30"),
    ]


def test_update_name_and_category_only_moves_nothing():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )

    tasks = task_scheduler.update_task(
        plan,
        plan.tasks[0].id,
        TaskUpdate(name="Deep work", category=TaskCategory.BREAK),
    )

    assert _times(tasks) == [
        ("Deep work", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    ]
    assert tasks[0].category == TaskCategory.BREAK
    assert plan.tasks[0].name == "A"


def test_update_cascade_overflow_names_task_and_changes_nothing():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "11:00", "12:00"),
        day_end="12:00",
    )
    before = [task.model_copy() for task in plan.tasks]

    with pytest.raises(CascadeOverflowError) as error:
        task_scheduler.update_task(plan, plan.tasks[0].id, TaskUpdate(end_time="10:30"))

    assert error.value.task_name == "B"
    assert "'B'" in error.value.message
    assert plan.tasks == before


def test_update_backward_cascade_overflow_is_rejected():
    plan = _plan(
        ("A", "06:00", "07:00"),
        ("B", "07:00", "08:00"),
    )

    with pytest.raises(CascadeOverflowError) as error:
        task_scheduler.update_task(plan, plan.tasks[1].id, TaskUpdate(start_time="06:30"))

    assert error.value.task_name == "A"


def test_update_outside_day_window_is_rejected():
    plan = _plan(("A", "09:00", "10:00"))

    with pytest.raises(OutOfDayBoundsError):
        task_scheduler.update_task(plan, plan.tasks[0].id, TaskUpdate(start_time="05:00"))


def test_update_rejects_inverted_times():
    plan = _plan(("A", "09:00", "10:00"))

    with pytest.raises(ValidationError):
        task_scheduler.update_task(plan, plan.tasks[0].id, TaskUpdate(start_time="10:30"))


def test_update_rejects_result_that_would_overlap():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )

    with pytest.raises(ScheduleConflictError):
        task_scheduler.update_task(
            plan, plan.tasks[1].id, TaskUpdate(start_time="08:00", end_time="12:00")
        )


def test_update_unknown_task():
    plan = _plan(("A", "09:00", "10:00"))

    with pytest.raises(TaskNotFoundError):
        task_scheduler.update_task(plan, uuid4(), TaskUpdate(name="Nope"))


# ===========================================
# complete_task
# ===========================================


def test_complete_late_shifts_subsequent_tasks():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
        ("C", "11:30", "12:00"),
    )

    tasks = task_scheduler.complete_task(plan, plan.tasks[0].id, "10:15")

    assert _times(tasks) == [
        ("A", "09:00", "10:00"),
        ("B", "10:15", "11:15"),
        ("C", "11:45", "12:15"),
    ]
    assert tasks[0].is_completed is True
    assert tasks[0].actual_end_time == "10:15"
    assert [task.order for task in tasks] == [0, 1, 2]


def test_complete_early_pulls_subsequent_tasks_forward():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )

    tasks = task_scheduler.complete_task(plan, plan.tasks[0].id, "09:40")

    assert _by_name(tasks, "B").start_time == "09:40"
    assert _by_name(tasks, "B").end_time == "10:40"


def test_complete_does_not_touch_earlier_tasks():
    plan = _plan(
        ("A", "08:00", "09:00"),
        ("B", "09:00", "10:00"),
        ("C", "10:00", "11:00"),
    )

    tasks = task_scheduler.complete_task(plan, plan.tasks[1].id, "10:30")

    assert _times(tasks) == [
        ("A", "08:00", "09:00"),
        ("B", "09:00", "10:00"),
        ("C", "10:30", "11:30"),
    ]


def test_complete_twice_does_not_shift_again():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )
    first = task_scheduler.complete_task(plan, plan.tasks[0].id, "10:15")
    plan = _with_tasks(plan, first)

    second = task_scheduler.complete_task(plan, plan.tasks[0].id, "10:15")

    assert second == first
    assert _by_name(second, "B").start_time == "10:15"


def test_complete_last_task_past_day_end_records_actual_end():
    plan = _plan(("Wrap up", "22:30", "23:00"))

    tasks = task_scheduler.complete_task(plan, plan.tasks[0].id, "23:15")

    assert _times(tasks) == [("Wrap up", "22:30", "23:00")]
    assert tasks[0].actual_end_time == "23:15"
    assert tasks[0].is_completed is True


def test_complete_rejects_shift_past_day_end():
    plan = _plan(
        ("A", "21:00", "22:00"),
        ("B", "22:00", "23:00"),
    )

    with pytest.raises(CascadeOverflowError) as error:
        task_scheduler.complete_task(plan, plan.tasks[0].id, "22:30")

    assert error.value.task_name == "B"
    assert plan.tasks[0].is_completed is False


def test_complete_on_time_only_marks_completed():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
    )

    tasks = task_scheduler.complete_task(plan, plan.tasks[0].id, "10:00")

    assert tasks[0].is_completed is True
    assert tasks[0].actual_end_time is None
    assert _times(tasks) == _times(plan.tasks)


def test_complete_without_actual_end_time():
    plan = _plan(("A", "09:00", "10:00"))

    tasks = task_scheduler.complete_task(plan, plan.tasks[0].id)

    assert tasks[0].is_completed is True
    assert tasks[0].actual_end_time is None


def test_update_after_early_completion_succeeds():
    """Editing a later task is allowed once an early finish pulled it back."""
    plan = _plan(
        ("T1", "09:00", "10:00"),
        ("T2", "10:00", "11:00"),
        ("T3", "12:00", "13:00"),
    )
    plan = _with_tasks(plan, task_scheduler.complete_task(plan, plan.tasks[0].id, "09:30"))
    assert _times(plan.tasks) == [
        ("T1", "09:00", "10:00"),
        ("T2", "09:30", "10:30"),
        ("T3", "11:30", "12:30"),
    ]

    tasks = task_scheduler.update_task(plan, plan.tasks[2].id, TaskUpdate(end_time="13:15"))

    assert _times(tasks) == [
        ("T1", "09:00", "10:00"),
        ("T2", "09:30", "10:30"),
        ("T3", "11:30", "13:15"),
    ]
    assert tasks[0].is_completed is True


def test_update_task_pulled_into_completed_one_keeps_existing_overlap():
    plan = _plan(
        ("T1", "09:00", "10:00"),
        ("T2", "10:00", "11:00"),
        ("T3", "12:00", "13:00"),
    )
    plan = _with_tasks(plan, task_scheduler.complete_task(plan, plan.tasks[0].id, "09:30"))

    tasks = task_scheduler.update_task(plan, plan.tasks[1].id, TaskUpdate(end_time="10:45"))

    assert _times(tasks) == [
        ("T1", "09:00", "10:00"),
        ("T2", "09:30", "10:45"),
        ("T3", "11:45", "12:45"),
    ]


def test_update_earlier_start_after_early_completion_moves_completed_task_too():
    plan = _plan(
        ("T1", "09:00", "10:00"),
        ("T2", "10:00", "11:00"),
    )
    plan = _with_tasks(plan, task_scheduler.complete_task(plan, plan.tasks[0].id, "09:30"))

    tasks = task_scheduler.update_task(plan, plan.tasks[1].id, TaskUpdate(start_time="09:15"))

    assert _times(tasks) == [
        ("T1", "08:45", "09:45"),
        ("T2", "09:15", "10:30"),
    ]


def test_update_reordering_into_neighbour_is_rejected_after_early_completion():
    plan = _plan(
        ("T1", "09:00", "10:00"),
        ("T2", "10:00", "11:00"),
        ("T3", "11:00", "12:00"),
    )
    plan = _with_tasks(plan, task_scheduler.complete_task(plan, plan.tasks[0].id, "09:30"))

    with pytest.raises(ScheduleConflictError):
        task_scheduler.update_task(
            plan, plan.tasks[2].id, TaskUpdate(start_time="09:00", end_time="12:30")
        )


def test_complete_rejects_actual_end_before_start():
    plan = _plan(("A", "09:00", "10:00"), ("B", "10:00", "11:00"))

    with pytest.raises(ValidationError):
        task_scheduler.complete_task(plan, plan.tasks[0].id, "08:30")


# ===========================================
# delete_task
# ===========================================


def test_delete_renumbers_without_moving_times():
    plan = _plan(
        ("A", "09:00", "10:00"),
        ("B", "10:00", "11:00"),
        ("C", "12:00", "13:00"),
    )

    tasks = task_scheduler.delete_task(plan, plan.tasks[1].id)

    assert _times(tasks) == [
        ("A", "09:00", "10:00"),
        ("C", "12:00", "13:00"),
    ]
    assert [task.order for task in tasks] == [0, 1]


def test_delete_unknown_task():
    plan = _plan(("A", "09:00", "10:00"))

    with pytest.raises(TaskNotFoundError):
        task_scheduler.delete_task(plan, uuid4())
