"""
Exam portal API paths used by the session layer, and the user class -> renewal endpoint table.
"""
from enum import Enum
from urllib.parse import urlsplit

LOGIN = "/login"
LOGIN_EXAMINEE = "/login/examinee"
REFRESH = "/login/refresh"
REFRESH_EXAMINEE = "/login/examinee/refresh"
PROFILE = "/profile"
ORGANIZATIONS_RESOLVE = "/organizations/resolve"


class UserClass(str, Enum):
    """Which login (and so which renewal exchange) a session belongs to. Resolved once at login."""

    STAFF = "staff"
    EXAMINEE = "examinee"


LOGIN_ENDPOINTS = {
    UserClass.STAFF: LOGIN,
    UserClass.EXAMINEE: LOGIN_EXAMINEE,
}

RENEWAL_ENDPOINTS = {
    UserClass.STAFF: REFRESH,
    UserClass.EXAMINEE: REFRESH_EXAMINEE,
}


def renewal_endpoint(user_class: UserClass | None) -> str:
    """Renewal path for the user class; sessions without metadata renew as staff."""
    return RENEWAL_ENDPOINTS[user_class or UserClass.STAFF]


def _path_of(url: str, base_path: str = "") -> str:
    path = urlsplit(str(url)).path
    if base_path and path.startswith(base_path):
        path = path[len(base_path):]
    return path.rstrip("/") or "/"


def is_login_path(url: str, base_path: str = "") -> bool:
    return _path_of(url, base_path) in LOGIN_ENDPOINTS.values()


def is_renewal_path(url: str, base_path: str = "") -> bool:
    return _path_of(url, base_path) in RENEWAL_ENDPOINTS.values()
