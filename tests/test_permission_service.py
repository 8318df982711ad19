# tests/test_permission_service.py

"""
Tests for menu permission resolution: tree assembly, ancestors, pruning,
ordering and point access checks.
"""

from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from backoffice.services.permission_service import PermissionService, build_menu_forest
from factories import grant, make_menu, make_role, make_user

EXTRA_FLAGS = ("can_create", "can_update", "can_delete", "can_confirm")


def _entry(id, parent_id=None, order=0, can_view=True, **flags):
    entry = {
        "id": id, "title": f"m{id}", "url": f"/m{id}", "icon": None,
        "order": order, "parent_id": parent_id, "is_active": True,
        "can_view": can_view,
    }
    entry.update({flag: flags.get(flag, False) for flag in EXTRA_FLAGS})
    return entry


def _ids(forest):
    return [node.id for node in forest]


def _walk(forest):
    for node in forest:
        yield node
        yield from _walk(node.children)


# ---- Pure forest assembly ----

def test_forest_roots_include_nodes_with_missing_parent():
    """A node whose parent is not a candidate becomes a root."""
    forest = build_menu_forest([_entry(5, parent_id=99), _entry(6)])
    assert sorted(_ids(forest)) == [5, 6]


def test_forest_prunes_non_viewable_leaf():
    forest = build_menu_forest([_entry(1), _entry(2, parent_id=1, can_view=False)])
    assert _ids(forest) == [1]
    assert forest[0].children == []


def test_forest_keeps_non_viewable_node_with_visible_child():
    forest = build_menu_forest([_entry(1, can_view=False), _entry(2, parent_id=1)])
    assert _ids(forest) == [1]
    assert forest[0].can_view is False
    assert _ids(forest[0].children) == [2]


def test_forest_prunes_whole_invisible_subtree():
    forest = build_menu_forest([
        _entry(1, can_view=False),
        _entry(2, parent_id=1, can_view=False),
        _entry(3, parent_id=2, can_view=False),
    ])
    assert forest == []


def test_forest_orders_siblings_by_order_then_id():
    forest = build_menu_forest([
        _entry(4, order=2),
        _entry(3, order=1),
        _entry(1, order=2),
        _entry(10, parent_id=3, order=5),
        _entry(9, parent_id=3, order=5),
        _entry(8, parent_id=3, order=0),
    ])
    assert _ids(forest) == [3, 1, 4]
    assert _ids(forest[0].children) == [8, 9, 10]


def test_forest_cuts_parent_cycle():
    """Nodes that only reach each other still come out exactly once."""
    forest = build_menu_forest([
        _entry(1, parent_id=2),
        _entry(2, parent_id=1),
        _entry(3, parent_id=2),
    ])
    ids = [node.id for node in _walk(forest)]
    assert sorted(ids) == [1, 2, 3]
    assert len(forest) == 1


def test_forest_treats_self_parent_as_root():
    forest = build_menu_forest([_entry(1, parent_id=1)])
    assert _ids(forest) == [1]
    assert forest[0].children == []


# ---- Resolution against the database ----

def test_worked_example_synthesizes_root_ancestor(db):
    """Root without a grant is shown view-only above its granted descendants."""
    role = make_role(db, "viewer")
    a = make_menu(db, "A", order=1)
    b = make_menu(db, "B", parent=a, order=1)
    c = make_menu(db, "C", parent=b, order=1)
    grant(db, role, b, can_view=True, can_create=False)
    grant(db, role, c, can_view=True, can_create=True)
    user = make_user(db, "v@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    assert len(forest) == 1
    root = forest[0]
    assert root.id == a.id
    assert root.can_view is True
    assert all(getattr(root, flag) is False for flag in EXTRA_FLAGS)
    assert _ids(root.children) == [b.id]
    node_b = root.children[0]
    assert node_b.can_view is True and node_b.can_create is False
    assert _ids(node_b.children) == [c.id]
    node_c = node_b.children[0]
    assert node_c.can_view is True and node_c.can_create is True
    assert node_c.children == []


def test_menu_without_view_grant_is_absent(db):
    role = make_role(db, "viewer")
    d = make_menu(db, "D")
    other = make_menu(db, "Other")
    grant(db, role, d, can_view=False, can_create=True)
    grant(db, role, other, can_view=True)
    user = make_user(db, "v@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    assert _ids(forest) == [other.id]


def test_every_ancestor_of_a_deep_grant_is_included(db):
    role = make_role(db, "viewer")
    chain = [make_menu(db, "L0")]
    for depth in range(1, 5):
        chain.append(make_menu(db, f"L{depth}", parent=chain[-1]))
    grant(db, role, chain[-1], can_view=True, can_update=True)
    user = make_user(db, "v@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    node, seen = forest[0], []
    while True:
        seen.append(node.id)
        if not node.children:
            break
        node = node.children[0]
    assert seen == [m.id for m in chain]
    for synthesized in list(_walk(forest))[:-1]:
        assert synthesized.can_view is True
        assert all(getattr(synthesized, flag) is False for flag in EXTRA_FLAGS)


def test_ancestor_with_own_grant_keeps_its_flags(db):
    role = make_role(db, "editor")
    parent = make_menu(db, "Parent")
    child = make_menu(db, "Child", parent=parent)
    grant(db, role, parent, can_view=False, can_delete=True)
    grant(db, role, child, can_view=True)
    user = make_user(db, "e@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    assert _ids(forest) == [parent.id]
    assert forest[0].can_view is False
    assert forest[0].can_delete is True
    assert _ids(forest[0].children) == [child.id]


def test_inactive_ancestor_stops_the_walk(db):
    role = make_role(db, "viewer")
    hidden = make_menu(db, "Hidden", is_active=False)
    child = make_menu(db, "Child", parent=hidden)
    grant(db, role, child, can_view=True)
    user = make_user(db, "v@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    assert _ids(forest) == [child.id]


def test_inactive_granted_menu_is_ignored(db):
    role = make_role(db, "viewer")
    menu = make_menu(db, "Old", is_active=False)
    grant(db, role, menu, can_view=True)
    user = make_user(db, "v@example.com", role)

    assert PermissionService(db).resolve_accessible_menus(user.id) == []


def test_siblings_follow_menu_order(db):
    role = make_role(db, "viewer")
    third = make_menu(db, "Third", order=3)
    first = make_menu(db, "First", order=1)
    tie_a = make_menu(db, "TieA", order=2)
    tie_b = make_menu(db, "TieB", order=2)
    for menu in (third, first, tie_a, tie_b):
        grant(db, role, menu, can_view=True)
    user = make_user(db, "v@example.com", role)

    forest = PermissionService(db).resolve_accessible_menus(user.id)

    assert _ids(forest) == [first.id, tie_a.id, tie_b.id, third.id]


def test_role_without_grants_yields_empty_forest(db):
    role = make_role(db, "nobody")
    make_menu(db, "Dashboard")
    user = make_user(db, "n@example.com", role)

    assert PermissionService(db).resolve_accessible_menus(user.id) == []


def test_unknown_user_or_missing_role_yields_empty(db):
    service = PermissionService(db)
    roleless = make_user(db, "r@example.com", None)

    assert service.resolve_accessible_menus(9999) == []
    assert service.resolve_accessible_menus(roleless.id) == []
    assert service.resolve_flat_permissions(roleless.id) == []


def test_resolution_is_idempotent(db):
    role = make_role(db, "viewer")
    root = make_menu(db, "Root")
    leaf = make_menu(db, "Leaf", parent=root)
    grant(db, role, leaf, can_view=True)
    user = make_user(db, "v@example.com", role)
    service = PermissionService(db)

    first = [n.model_dump() for n in service.resolve_accessible_menus(user.id)]
    second = [n.model_dump() for n in service.resolve_accessible_menus(user.id)]

    assert first == second


def test_flat_permissions_list_every_row_on_active_menus(db):
    role = make_role(db, "viewer")
    shown = make_menu(db, "Shown")
    write_only = make_menu(db, "WriteOnly")
    retired = make_menu(db, "Retired", is_active=False)
    grant(db, role, shown, can_view=True)
    grant(db, role, write_only, can_view=False, can_create=True)
    grant(db, role, retired, can_view=True)
    user = make_user(db, "v@example.com", role)

    rows = PermissionService(db).resolve_flat_permissions(user.id)

    by_menu = {row.menu_id: row for row in rows}
    assert set(by_menu) == {shown.id, write_only.id}
    assert by_menu[write_only.id].can_create is True
    assert by_menu[write_only.id].can_view is False


# ---- Point checks ----

def test_check_access_reads_the_grant_flag(db):
    role = make_role(db, "editor")
    menu = make_menu(db, "Units", url="/unit")
    grant(db, role, menu, can_view=True, can_update=True)
    user = make_user(db, "e@example.com", role)
    service = PermissionService(db)

    assert service.check_access(user.id, menu.id, "can_update") is True
    assert service.check_access(user.id, menu.id, "can_delete") is False
    assert service.check_access_by_url(user.id, "/unit") is True
    assert service.check_access_by_url(user.id, "/unit", "can_confirm") is False


def test_check_access_fails_closed(db):
    role = make_role(db, "editor")
    menu = make_menu(db, "Units")
    retired = make_menu(db, "Retired", is_active=False)
    grant(db, role, retired, can_view=True)
    user = make_user(db, "e@example.com", role)
    service = PermissionService(db)

    assert service.check_access(user.id, menu.id, "can_view") is False
    assert service.check_access(user.id, retired.id, "can_view") is False
    assert service.check_access(9999, menu.id, "can_view") is False
    assert service.check_access(user.id, menu.id, "can_fly") is False


def test_check_access_denies_on_database_error(db):
    role = make_role(db, "editor")
    menu = make_menu(db, "Units")
    grant(db, role, menu, can_view=True)
    user = make_user(db, "e@example.com", role)
    service = PermissionService(db)

    with patch.object(
        service.repo, "get_grant", side_effect=OperationalError("SELECT", {}, Exception("down")),
    ):
        assert service.check_access(user.id, menu.id, "can_view") is False


def test_ancestor_lookup_batches_per_level(db):
    """One active-menu query per tree level, regardless of how many grants."""
    role = make_role(db, "viewer")
    root = make_menu(db, "Root")
    mids = [make_menu(db, f"Mid{i}", parent=root) for i in range(3)]
    for i, mid in enumerate(mids):
        for j in range(2):
            grant(db, role, make_menu(db, f"Leaf{i}{j}", parent=mid), can_view=True)
    user = make_user(db, "v@example.com", role)
    service = PermissionService(db)

    with patch.object(
        service.repo, "get_active_menus", wraps=service.repo.get_active_menus,
    ) as spy:
        forest = service.resolve_accessible_menus(user.id)

    assert spy.call_count == 2
    assert _ids(forest) == [root.id]
    assert len(forest[0].children) == 3


def test_sidebar_shape(db):
    role = make_role(db, "viewer")
    users = make_menu(db, "Users", url="", icon="UsersRound", order=2)
    manage = make_menu(db, "Manage Users", parent=users, url="/users", order=1)
    dash = make_menu(db, "Dashboard", url="/dashboard", icon="House", order=1)
    grant(db, role, dash, can_view=True)
    grant(db, role, manage, can_view=True, can_create=True)
    user = make_user(db, "v@example.com", role)

    sidebar = PermissionService(db).sidebar(user.id)

    nav = sidebar["navMain"]
    assert [item["title"] for item in nav] == ["Dashboard", "Users"]
    assert "items" not in nav[0]
    assert nav[1]["url"] == "#"
    assert nav[1]["can_add"] is False
    assert nav[1]["items"][0]["title"] == "Manage Users"
    assert nav[1]["items"][0]["can_add"] is True
