"""Permission resolution — which menus a user's role may see and do.

The navigation tree is assembled from a flat candidate set:

* menus the role is explicitly allowed to view, and
* every active ancestor of those menus, walked transitively up the
  ``parent_id`` chain so no visible menu is ever orphaned.

An ancestor without a grant row of its own is shown with ``can_view`` only;
it never inherits create/update/delete/confirm rights from its children.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice.core.enums import PermissionKind
from backoffice.core.exceptions import ValidationError
from backoffice.core.logging_config import get_logger
from backoffice.models.menu import Menu, RoleMenuPermission
from backoffice.repositories.access_menu_repository import AccessMenuRepository
from backoffice.schemas.schemas import MenuPermissionNode, MenuPermissionOut

logger = get_logger("services.permission")

FLAGS = tuple(kind.value for kind in PermissionKind)


def menu_entry(menu: Menu, grant: Optional[RoleMenuPermission]) -> dict:
    """Flat candidate for one menu. ``grant=None`` means a synthesized ancestor."""
    entry = {
        "id": menu.id,
        "title": menu.title,
        "url": menu.url,
        "icon": menu.icon,
        "order": menu.order or 0,
        "parent_id": menu.parent_id,
        "is_active": menu.is_active,
    }
    if grant is None:
        entry.update({flag: False for flag in FLAGS})
        entry["can_view"] = True
    else:
        entry.update({flag: bool(getattr(grant, flag)) for flag in FLAGS})
    return entry


def _sort_key(entry: dict):
    return (entry["order"], entry["id"])


def build_menu_forest(entries: Iterable[dict]) -> List[MenuPermissionNode]:
    """Assemble, prune and order a forest from flat menu entries.

    Roots are entries without a parent or whose parent is not among the
    entries. A node survives when it is viewable or keeps at least one
    surviving child. Siblings are ordered by ``order`` then id.
    """
    nodes: Dict[int, dict] = {}
    for entry in sorted(entries, key=_sort_key):
        nodes[entry["id"]] = entry

    children: Dict[int, List[int]] = defaultdict(list)
    roots: List[int] = []
    for node_id, entry in nodes.items():
        parent_id = entry["parent_id"]
        if parent_id is not None and parent_id != node_id and parent_id in nodes:
            children[parent_id].append(node_id)
        else:
            roots.append(node_id)

    # parent_id cycles are not prevented by the schema; a cycle with no root
    # above it is cut where the parent walk first revisits a node.
    reached = set()

    def mark(start: int) -> None:
        stack = [start]
        while stack:
            current = stack.pop()
            if current in reached:
                continue
            reached.add(current)
            stack.extend(children[current])

    for root_id in roots:
        mark(root_id)
    for node_id in nodes:
        if node_id in reached:
            continue
        walked = set()
        current = node_id
        while current not in walked:
            walked.add(current)
            current = nodes[current]["parent_id"]
        children[nodes[current]["parent_id"]].remove(current)
        roots.append(current)
        mark(current)
    roots.sort(key=lambda i: _sort_key(nodes[i]))

    def assemble(node_id: int) -> Optional[MenuPermissionNode]:
        kept = [
            child for child in (assemble(c) for c in children[node_id])
            if child is not None
        ]
        entry = nodes[node_id]
        if not entry["can_view"] and not kept:
            return None
        return MenuPermissionNode(
            id=entry["id"],
            title=entry["title"],
            url=entry["url"],
            icon=entry["icon"],
            order=entry["order"],
            is_active=entry["is_active"],
            **{flag: entry[flag] for flag in FLAGS},
            children=kept,
        )

    return [node for node in (assemble(r) for r in roots) if node is not None]


class PermissionService:
    """Resolves menu trees, flat permission lists and single access checks."""

    def __init__(self, db: Session):
        self.repo = AccessMenuRepository(db)

    def _role_id(self, user_id: int) -> Optional[int]:
        role_id = self.repo.get_user_role_id(user_id)
        if role_id is None:
            logger.warning("user_or_role_not_found", extra={"user_id": user_id})
        return role_id

    def _include_ancestors(self, role_id: int, candidates: Dict[int, dict]) -> int:
        """Add every active ancestor of the candidates, one query pair per tree level."""
        visited = set(candidates)
        frontier = {
            c["parent_id"] for c in candidates.values() if c["parent_id"] is not None
        } - visited
        added = 0
        while frontier:
            visited |= frontier
            menus = self.repo.get_active_menus(frontier)
            grants = {
                g.menu_id: g
                for g in self.repo.list_grants_for_menus(role_id, [m.id for m in menus])
            }
            for menu in menus:
                candidates[menu.id] = menu_entry(menu, grants.get(menu.id))
                added += 1
            frontier = {m.parent_id for m in menus if m.parent_id is not None} - visited
        return added

    def resolve_accessible_menus(self, user_id: int) -> List[MenuPermissionNode]:
        """Ordered forest of the menus the user's role can reach."""
        logger.info("resolve_accessible_menus", extra={"user_id": user_id})
        role_id = self._role_id(user_id)
        if role_id is None:
            return []

        granted = self.repo.list_granted(role_id, viewable_only=True)
        candidates = {g.menu_id: menu_entry(g.menu, g) for g in granted}
        if not candidates:
            return []
        ancestors = self._include_ancestors(role_id, candidates)

        forest = build_menu_forest(candidates.values())
        logger.info(
            "resolve_accessible_menus_done",
            extra={
                "user_id": user_id,
                "granted": len(granted),
                "ancestors": ancestors,
                "roots": len(forest),
            },
        )
        return forest

    def resolve_flat_permissions(self, user_id: int) -> List[MenuPermissionOut]:
        """Every grant row of the user's role on an active menu."""
        role_id = self._role_id(user_id)
        if role_id is None:
            return []
        return [
            MenuPermissionOut(menu_id=g.menu_id, **{flag: bool(getattr(g, flag)) for flag in FLAGS})
            for g in self.repo.list_granted(role_id)
        ]

    def _check(self, user_id: int, permission_kind: str, lookup) -> bool:
        try:
            kind = PermissionKind.from_wire(permission_kind)
        except ValidationError:
            logger.warning("unknown_permission_kind", extra={"permission": permission_kind})
            return False
        try:
            role_id = self._role_id(user_id)
            if role_id is None:
                return False
            grant = lookup(role_id)
        except SQLAlchemyError:
            logger.exception("check_access_lookup_failed", extra={"user_id": user_id})
            return False
        return bool(grant is not None and getattr(grant, kind.value))

    def check_access(self, user_id: int, menu_id: int, permission_kind: str) -> bool:
        """Point lookup of one flag. Fails closed: any miss is ``False``."""
        allowed = self._check(
            user_id, permission_kind, lambda role_id: self.repo.get_grant(role_id, menu_id)
        )
        logger.info(
            "menu_access_check",
            extra={"user_id": user_id, "menu_id": menu_id, "permission": permission_kind, "allowed": allowed},
        )
        return allowed

    def check_access_by_url(self, user_id: int, url: str, permission_kind: str = "can_view") -> bool:
        allowed = self._check(
            user_id, permission_kind, lambda role_id: self.repo.get_grant_by_url(role_id, url)
        )
        logger.info(
            "menu_access_check_by_url",
            extra={"user_id": user_id, "url": url, "permission": permission_kind, "allowed": allowed},
        )
        return allowed

    def sidebar(self, user_id: int) -> dict:
        """The accessible forest in the shape the admin sidebar renders."""

        def item(node: MenuPermissionNode) -> dict:
            entry = {
                "title": node.title,
                "url": node.url or "#",
                "icon": node.icon,
                "isActive": node.is_active,
                "can_add": node.can_create,
                "can_edit": node.can_update,
                "can_delete": node.can_delete,
                "can_confirm": node.can_confirm,
            }
            if node.children:
                entry["items"] = [item(child) for child in node.children]
            return entry

        return {"navMain": [item(node) for node in self.resolve_accessible_menus(user_id)]}
