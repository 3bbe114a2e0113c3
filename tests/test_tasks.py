from datetime import timedelta

from juriscloud.models import TaskStatus, utcnow
from juriscloud.resources.controller import ResourceListController, TaskListController
from juriscloud.resources.dialog import ResourceDialog
from juriscloud.resources.specs import CASES, TASKS
from juriscloud.resources.views import group_tasks, is_task_overdue


async def test_done_task_leaves_the_overdue_set(gateway, session, notifier):
    controller = TaskListController(TASKS, gateway, session)
    task = await controller.create({
        "title": "Déposer les conclusions",
        "due_date": utcnow() - timedelta(days=2),
    })
    assert task.status == TaskStatus.TODO
    assert task.completed_at is None
    assert [row.id for row in controller.overdue] == [task.id]

    done = await controller.mark_status(task.id, TaskStatus.DONE)

    assert done.status == TaskStatus.DONE
    assert done.completed_at is not None
    assert controller.overdue == []
    assert notifier.last.title == "Tâche complétée"


async def test_reopening_a_task_clears_completion(gateway, session):
    controller = TaskListController(TASKS, gateway, session)
    task = await controller.create({"title": "Appeler le greffe"})
    await controller.mark_as_completed(task.id)
    reopened = await controller.mark_status(task.id, TaskStatus.IN_PROGRESS)
    assert reopened.completed_at is None


async def test_tasks_are_ordered_by_due_date_with_undated_last(gateway, session):
    controller = TaskListController(TASKS, gateway, session)
    now = utcnow()
    await controller.create({"title": "Sans échéance"})
    await controller.create({"title": "Dans une semaine", "due_date": now + timedelta(days=7)})
    await controller.create({"title": "Demain", "due_date": now + timedelta(days=1)})
    assert [row.title for row in controller.rows] == ["Demain", "Dans une semaine", "Sans échéance"]


async def test_task_embeds_its_case(gateway, session):
    cases = ResourceListController(CASES, gateway, session)
    case = await cases.create({"title": "Martin vs Dupont", "case_number": "DOS-2024-001", "case_type": "Civil"})
    controller = TaskListController(TASKS, gateway, session)
    await controller.create({"title": "Préparer l'audience", "legal_case_id": case.id})
    assert controller.rows[0].legal_cases.title == "Martin vs Dupont"


async def test_task_without_case_accepts_none_from_select(gateway, session):
    controller = TaskListController(TASKS, gateway, session)
    task = await controller.create({"title": "Relire", "legal_case_id": "none"})
    assert task.legal_case_id is None


def test_group_tasks():
    now = utcnow()
    tasks = [
        {"status": TaskStatus.TODO, "due_date": now - timedelta(hours=1)},
        {"status": TaskStatus.IN_PROGRESS, "due_date": now + timedelta(days=1)},
        {"status": TaskStatus.DONE, "due_date": now - timedelta(days=3)},
        {"status": TaskStatus.CANCELLED, "due_date": None},
    ]
    groups = group_tasks(tasks, now)
    assert len(groups["todo"]) == 1
    assert len(groups["in_progress"]) == 1
    assert len(groups["done"]) == 1
    assert groups["overdue"] == [tasks[0]]


def test_task_without_due_date_is_never_overdue():
    assert is_task_overdue({"status": TaskStatus.TODO, "due_date": None}) is False


async def test_editing_a_done_task_keeps_its_completion_time(gateway, session):
    controller = TaskListController(TASKS, gateway, session)
    task = await controller.create({"title": "Déposer les conclusions"})
    done = await controller.mark_status(task.id, TaskStatus.DONE)
    completed_at = done.completed_at

    dialog = ResourceDialog(controller, done)
    edited = await dialog.submit({"title": "Déposer les conclusions au greffe"})

    assert edited.title == "Déposer les conclusions au greffe"
    assert edited.status == TaskStatus.DONE
    assert edited.completed_at == completed_at

    again = await controller.mark_status(task.id, TaskStatus.DONE)
    assert again.completed_at == completed_at
