from pydantic import BaseModel


class NavItem(BaseModel):
    label: str
    target: str
    badge: str | None = None


class QuickAction(BaseModel):
    label: str
    target: str


class NavigationRead(BaseModel):
    items: list[NavItem]
    quick_actions: list[QuickAction]
