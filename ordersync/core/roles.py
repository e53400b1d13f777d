from enum import Enum


class Role(str, Enum):
    admin = "ADMIN"
    employee = "EMPLOYEE"


class View(str, Enum):
    dashboard = "dashboard"
    products = "products"
    orders = "orders"
    employees = "employees"
    profile = "profile"


# Display order of the navigation, per role.
VIEWS_BY_ROLE = {
    Role.admin: (View.dashboard, View.products, View.orders, View.employees, View.profile),
    Role.employee: (View.products, View.orders, View.profile),
}


def parse_role(value) -> Role | None:
    if isinstance(value, Role):
        return value
    normalized = str(value or "").strip().upper()
    for role in Role:
        if role.value == normalized:
            return role
    return None
