from collections.abc import Callable
from functools import wraps
from typing import Any

from flask import current_app, g

from app.backoffice.errors import Forbidden, Unauthenticated
from app.backoffice.models import User
from app.backoffice.permissions import FinanceOperation, PermissionEngine


def permission_engine() -> PermissionEngine:
    return current_app.extensions["permission_engine"]


def user_has_permission(user: User | None, permission_key: str) -> bool:
    if not user or not user.is_active:
        return False
    return permission_engine().has_permission(user.role, permission_key)


def user_has_finance_access(user: User | None, operation: FinanceOperation | str) -> bool:
    if not user or not user.is_active:
        return False
    return permission_engine().has_finance_access(user.role, user.has_finance_access, operation)


def current_user() -> User:
    """The authenticated user for this request, or raise Unauthenticated."""
    user: User | None = getattr(g, "current_user", None)
    if not user or not user.is_active:
        raise Unauthenticated()
    return user


def ensure_permission(user: User, permission_key: str) -> None:
    if not user_has_permission(user, permission_key):
        raise Forbidden(missing_permission=permission_key)


def ensure_finance_access(user: User, operation: FinanceOperation | str) -> None:
    if not user_has_finance_access(user, operation):
        raise Forbidden(
            "You don't have permission to manage finance",
            missing_permission=f"finance.{FinanceOperation(operation).value}",
        )


def require_login(fn: Callable[..., Any]) -> Callable[..., Any]:
    @wraps(fn)
    def wrapped(*args: Any, **kwargs: Any):
        current_user()
        return fn(*args, **kwargs)

    return wrapped


def require_permission(permission_key: str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            # Unauthenticated -> 401, authenticated but unauthorized -> 403
            ensure_permission(current_user(), permission_key)
            return fn(*args, **kwargs)

        return wrapped

    return decorator


def require_finance_access(operation: FinanceOperation | str) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        @wraps(fn)
        def wrapped(*args: Any, **kwargs: Any):
            ensure_finance_access(current_user(), operation)
            return fn(*args, **kwargs)

        return wrapped

    return decorator
