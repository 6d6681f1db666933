# Rev 1.0.0
# tests/test_cascade.py
from __future__ import annotations

import pytest

from stepladder.models.errors import StepLocked
from stepladder.repositories.sqlite_step_repository import SQLiteStepRepository
from stepladder.repositories.sqlite_subtask_repository import SQLiteSubtaskRepository
from stepladder.services.cascade import CascadeEngine, all_complete


def _flags(app, step_id):
    step = app.steps._steps.get_step(step_id)
    return step.is_completed, step.is_unlocked


# --- pure rule ----------------------------------------------------------------

@pytest.mark.parametrize(
    "states,expected",
    [
        ([], False),
        ([True], True),
        ([True, True, True], True),
        ([True, False], False),
        ([False], False),
    ],
)
def test_all_complete(states, expected):
    assert all_complete(states) is expected


# --- forward cascade ----------------------------------------------------------

def test_new_project_only_first_step_unlocked(app, make_project):
    _, steps, _ = make_project([1, 1, 1])
    assert [_flags(app, s) for s in steps] == [(False, True), (False, False), (False, False)]


def test_completing_step_unlocks_only_the_next(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1, 1])
    new_state, result = app.subtasks.toggle_with_cascade(as_user(owner), subs[0][0])

    assert new_state is True
    assert _flags(app, steps[0]) == (True, True)
    assert _flags(app, steps[1]) == (False, True)
    assert _flags(app, steps[2]) == (False, False)

    assert result.step_id == steps[0]
    assert result.is_completed is True
    assert result.unlocked_step_ids == [steps[1]]


def test_step_needs_every_subtask(app, owner, as_user, make_project):
    _, steps, subs = make_project([3, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    app.subtasks.toggle_complete(ctx, subs[0][1])
    assert _flags(app, steps[0]) == (False, True)
    assert _flags(app, steps[1]) == (False, False)

    app.subtasks.toggle_complete(ctx, subs[0][2])
    assert _flags(app, steps[0]) == (True, True)
    assert _flags(app, steps[1]) == (False, True)


def test_last_step_completion_has_nothing_to_unlock(app, owner, as_user, make_project):
    _, steps, subs = make_project([1])
    _, result = app.subtasks.toggle_with_cascade(as_user(owner), subs[0][0])
    assert _flags(app, steps[0]) == (True, True)
    assert result.unlocked_step_ids == []


# --- backward cascade ---------------------------------------------------------

def test_regression_locks_every_later_step(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1, 1])
    ctx = as_user(owner)
    for s in subs:
        app.subtasks.toggle_complete(ctx, s[0])
    assert all(_flags(app, s) == (True, True) for s in steps)

    _, result = app.subtasks.toggle_with_cascade(ctx, subs[0][0])

    assert _flags(app, steps[0]) == (False, True)
    assert _flags(app, steps[1]) == (False, False)
    assert _flags(app, steps[2]) == (False, False)
    assert result.locked_step_ids == [steps[1], steps[2]]


def test_regression_ignores_later_subtask_states(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    app.subtasks.toggle_complete(ctx, subs[1][0])

    app.subtasks.toggle_complete(ctx, subs[0][0])

    # step 1's subtask is still done, but the step is invalidated anyway
    assert app.subtasks._subs.get_subtask(subs[1][0]).is_completed is True
    assert _flags(app, steps[1]) == (False, False)


def test_end_to_end_two_step_scenario(app, owner, as_user, make_project):
    _, (a, b), subs = make_project([1, 1])
    ctx = as_user(owner)

    app.subtasks.toggle_complete(ctx, subs[0][0])
    assert _flags(app, a) == (True, True)
    assert _flags(app, b) == (False, True)

    app.subtasks.toggle_complete(ctx, subs[1][0])
    assert _flags(app, b) == (True, True)

    app.subtasks.toggle_complete(ctx, subs[0][0])
    assert _flags(app, a) == (False, True)
    assert _flags(app, b) == (False, False)


# --- other triggers -----------------------------------------------------------

def test_update_drives_the_cascade(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1])
    ctx = as_user(owner)
    app.subtasks.update(ctx, subs[0][0], "Renamed", True)
    assert _flags(app, steps[0]) == (True, True)
    assert _flags(app, steps[1]) == (False, True)
    assert app.subtasks._subs.get_subtask(subs[0][0]).title == "Renamed"

    app.subtasks.update(ctx, subs[0][0], "Renamed again", False)
    assert _flags(app, steps[0]) == (False, True)
    assert _flags(app, steps[1]) == (False, False)


def test_update_without_completion_change_is_quiet(app, owner, as_user, make_project):
    _, steps, subs = make_project([1])
    _, result = app.subtasks.update_with_cascade(as_user(owner), subs[0][0], "Just a rename", False)
    assert result is None
    assert _flags(app, steps[0]) == (False, True)


def test_adding_subtask_to_completed_step_regresses_it(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    assert _flags(app, steps[1]) == (False, True)

    app.subtasks.create(ctx, steps[0], "Late addition")

    assert _flags(app, steps[0]) == (False, True)
    assert _flags(app, steps[1]) == (False, False)


def test_removing_the_only_open_subtask_completes_step(app, owner, as_user, make_project):
    _, steps, subs = make_project([2, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    app.subtasks.remove(ctx, subs[0][1])

    assert _flags(app, steps[0]) == (True, True)
    assert _flags(app, steps[1]) == (False, True)


def test_step_without_subtasks_is_never_complete(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    assert _flags(app, steps[0]) == (True, True)

    # emptying a completed step regresses it
    app.subtasks.remove(ctx, subs[0][0])
    assert _flags(app, steps[0]) == (False, True)
    assert _flags(app, steps[1]) == (False, False)


def test_empty_step_created_after_nothing_stays_incomplete(app, owner, as_user):
    ctx = as_user(owner)
    pid = app.projects.create(ctx, "Empty", "#10b981")
    sid = app.steps.create(ctx, pid, "Nothing to do")
    assert _flags(app, sid) == (False, True)


# --- engine against a stale store ----------------------------------------------

def test_recompute_prefers_post_mutation_value(app, owner, as_user, make_project, clock):
    _, steps, subs = make_project([2])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])

    conn = app.db.conn
    engine = CascadeEngine(SQLiteStepRepository(conn), SQLiteSubtaskRepository(conn))
    # the store still says subs[0][1] is open; the override says it is done
    result = engine.recompute_step(steps[0], now=clock(), changed_subtask_id=subs[0][1], changed_value=True)

    assert result is not None and result.is_completed is True
    assert _flags(app, steps[0]) == (True, True)


def test_recompute_unknown_step_is_noop(app, clock):
    conn = app.db.conn
    engine = CascadeEngine(SQLiteStepRepository(conn), SQLiteSubtaskRepository(conn))
    assert engine.recompute_step("missing", now=clock()) is None


# --- locked steps -------------------------------------------------------------

def test_locked_step_subtasks_cannot_change(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1, 1])
    ctx = as_user(owner)

    with pytest.raises(StepLocked):
        app.subtasks.toggle_complete(ctx, subs[1][0])
    with pytest.raises(StepLocked):
        app.subtasks.update(ctx, subs[1][0], "Early", True)
    with pytest.raises(StepLocked):
        app.subtasks.remove(ctx, subs[1][0])

    # the chain has no holes
    assert [_flags(app, s) for s in steps] == [(False, True), (False, False), (False, False)]
    assert app.subtasks._subs.get_subtask(subs[1][0]).is_completed is False


def test_locked_step_still_accepts_new_subtasks(app, owner, as_user, make_project):
    _, steps, _ = make_project([1, 1])
    new_id, result = app.subtasks.create_with_cascade(as_user(owner), steps[1], "Prepare ahead")
    assert result is None
    assert app.subtasks._subs.get_subtask(new_id) is not None
    assert _flags(app, steps[1]) == (False, False)


def test_removal_cannot_complete_a_relocked_step(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 2, 1])
    ctx = as_user(owner)
    app.subtasks.toggle_complete(ctx, subs[0][0])
    app.subtasks.toggle_complete(ctx, subs[1][0])
    app.subtasks.toggle_complete(ctx, subs[0][0])  # relocks step 1 with one subtask done

    with pytest.raises(StepLocked):
        app.subtasks.remove(ctx, subs[1][1])
    assert [_flags(app, s) for s in steps] == [(False, True), (False, False), (False, False)]


def test_each_call_returns_its_own_cascade(app, owner, as_user, make_project):
    _, steps, subs = make_project([1, 1])
    ctx = as_user(owner)
    _, first = app.subtasks.toggle_with_cascade(ctx, subs[0][0])
    _, second = app.subtasks.update_with_cascade(ctx, subs[1][0], "Renamed", False)

    assert second is None
    assert first.unlocked_step_ids == [steps[1]]
    assert not hasattr(app.subtasks, "last_cascade")
