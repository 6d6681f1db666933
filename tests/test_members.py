# Rev 1.0.0
from __future__ import annotations

import pytest

from stepladder.models.errors import InvalidArgument, Unauthorized
from stepladder.models.types import Role


def test_list_members_shows_display_names(app, owner, editor, viewer, as_user, make_project, share, clock):
    pid, _, _ = make_project([])
    share(pid, editor, "modify")
    share(pid, viewer, "view")

    members = {m.user_id: m for m in app.members.list_members(as_user(owner), pid)}
    assert set(members) == {editor, viewer}
    assert members[editor].user_name == "Eli Editor"
    assert members[editor].permission == "modify"
    assert members[viewer].user_name == "vera@example.com"
    assert members[viewer].user_email == "vera@example.com"
    assert members[viewer].added_by == owner
    assert members[viewer].added_at == clock()


def test_update_member_permission(app, owner, viewer, as_user, make_project, share):
    pid, steps, _ = make_project([1])
    share(pid, viewer, "view")

    app.members.update_member_permission(as_user(owner), pid, viewer, "modify")
    assert app.permissions.resolve_role(viewer, pid) is Role.MODIFY
    # the upgrade takes effect immediately
    app.steps.update(as_user(viewer), steps[0], title="Now editable")


def test_update_member_permission_validates(app, owner, editor, as_user, make_project, share):
    pid, _, _ = make_project([])
    share(pid, editor, "modify")
    with pytest.raises(InvalidArgument):
        app.members.update_member_permission(as_user(owner), pid, editor, "owner")
    with pytest.raises(Unauthorized):
        app.members.update_member_permission(as_user(editor), pid, editor, "view")
    assert app.members.check_permission(pid, editor) == "modify"


def test_remove_member(app, owner, editor, as_user, make_project, share):
    pid, _, _ = make_project([])
    share(pid, editor, "modify")

    with pytest.raises(Unauthorized):
        app.members.remove_member(as_user(editor), pid, editor)

    app.members.remove_member(as_user(owner), pid, editor)
    assert app.members.check_permission(pid, editor) is None
    assert app.projects.get(as_user(editor), pid) is None

    # removing a non-member is a no-op
    app.members.remove_member(as_user(owner), pid, editor)


def test_removed_member_can_be_invited_again(app, owner, editor, as_user, make_project, share):
    pid, _, _ = make_project([])
    share(pid, editor, "view")
    app.members.remove_member(as_user(owner), pid, editor)
    share(pid, editor, "modify")
    assert app.members.check_permission(pid, editor) == "modify"
