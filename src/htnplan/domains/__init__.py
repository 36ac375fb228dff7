"""Built-in sample domains."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from htnplan.core.errors import DomainConfigurationError
from htnplan.domains.dinner import DinnerState, build_dinner_domain
from htnplan.planning.nodes import Domain

__all__ = [
    "DinnerState",
    "available_domains",
    "build_dinner_domain",
    "get_domain",
]

_DOMAIN_FACTORIES: dict[str, Callable[[], Domain[Any]]] = {
    "dinner": build_dinner_domain,
}


def available_domains() -> list[str]:
    """Sorted names of the built-in domains."""
    return sorted(_DOMAIN_FACTORIES)


def get_domain(name: str) -> Domain[Any]:
    """Build the built-in domain called *name*.

    Raises:
        DomainConfigurationError: If no such domain exists.
    """
    try:
        factory = _DOMAIN_FACTORIES[name]
    except KeyError:
        known = ", ".join(available_domains())
        msg = f"Unknown domain '{name}' (available: {known})"
        raise DomainConfigurationError(msg) from None
    return factory()
