from campus.core.roles import Role
from campus.schemas.navigation import NavItem, QuickAction

_BASE_ITEMS = (
    NavItem(label="Dashboard", target="/dashboard"),
    NavItem(label="Courses", target="/courses"),
)

_ROLE_ITEMS: dict[Role, tuple[NavItem, ...]] = {
    Role.STUDENT: (
        NavItem(label="Assignments", target="/assignments"),
        NavItem(label="Schedule", target="/schedule"),
        NavItem(label="Grades", target="/grades"),
        NavItem(label="AI Assistant", target="/ai-assistant", badge="New"),
    ),
    Role.LECTURER: (
        NavItem(label="My Courses", target="/my-courses"),
        NavItem(label="Assignments", target="/assignments"),
        NavItem(label="Students", target="/students"),
        NavItem(label="AI Assistant", target="/ai-assistant"),
    ),
    Role.ADMIN: (
        NavItem(label="Users", target="/users"),
        NavItem(label="Analytics", target="/analytics"),
        NavItem(label="Pending Approvals", target="/approvals"),
        NavItem(label="AI Assistant", target="/ai-assistant"),
        NavItem(label="Settings", target="/settings"),
    ),
}

_QUICK_ACTIONS = (
    (QuickAction(label="Create Course", target="/courses/new"), frozenset({Role.LECTURER, Role.ADMIN})),
    (QuickAction(label="Browse Courses", target="/courses"), frozenset({Role.STUDENT})),
    (QuickAction(label="Add Assignment", target="/assignments/new"), frozenset({Role.LECTURER})),
)

if set(_ROLE_ITEMS) != set(Role):
    raise RuntimeError("Every role needs a navigation entry")


def visible_navigation(role: Role | str | None) -> list[NavItem]:
    if role is None:
        return list(_BASE_ITEMS)
    return [*_BASE_ITEMS, *_ROLE_ITEMS[Role.of(role)]]


def quick_actions(role: Role | str | None) -> list[QuickAction]:
    if role is None:
        return []
    role = Role.of(role)
    return [action for action, roles in _QUICK_ACTIONS if role in roles]
