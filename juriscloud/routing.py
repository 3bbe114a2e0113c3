from dataclasses import dataclass
from typing import Optional

PUBLIC_ROUTES = {
    "/": "index",
    "/auth": "auth",
}

PROTECTED_ROUTES = {
    "/dashboard": "dashboard",
    "/cases": "cases",
    "/clients": "clients",
    "/tasks": "tasks",
    "/invoices": "invoices",
    "/appointments": "appointments",
}

NOT_FOUND = "not-found"

MENU = [
    ("/dashboard", "Dashboard"),
    ("/cases", "Dossiers"),
    ("/clients", "Clients"),
    ("/tasks", "Tâches"),
    ("/invoices", "Facturation"),
    ("/appointments", "RDV"),
]


@dataclass
class Resolution:
    path: str
    screen: str
    redirected_from: Optional[str] = None


def resolve(path: str, signed_in: bool) -> Resolution:
    """Map a path to a screen, redirecting around the auth guard."""
    path = "/" + path.strip().strip("/") if path.strip("/ ") else "/"
    if path in PROTECTED_ROUTES:
        if not signed_in:
            return Resolution(path="/auth", screen="auth", redirected_from=path)
        return Resolution(path=path, screen=PROTECTED_ROUTES[path])
    if path == "/auth" and signed_in:
        return Resolution(path="/dashboard", screen="dashboard", redirected_from=path)
    if path in PUBLIC_ROUTES:
        return Resolution(path=path, screen=PUBLIC_ROUTES[path])
    return Resolution(path=path, screen=NOT_FOUND)
