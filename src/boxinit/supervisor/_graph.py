"""Dependency graph validation for supervised services."""

from typing import TYPE_CHECKING

from boxinit.exceptions import DependencyError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ._models import ServiceSpec


def resolve_start_order(specs: "Iterable[ServiceSpec]") -> tuple[str, ...]:
    """Validate the dependency graph and return a start order.

    Services appear after all of their dependencies. Independent services
    keep their declaration order.

    Args:
        specs: Service declarations.

    Returns:
        Service names in a dependency-respecting order.

    Raises:
        DependencyError: If a service depends on itself, on an unknown
            service, or takes part in a dependency cycle.
    """
    by_name: dict[str, ServiceSpec] = {}
    for spec in specs:
        if spec.name in by_name:
            msg = f"Service '{spec.name}' is declared more than once"
            raise DependencyError(msg, service_name=spec.name)
        by_name[spec.name] = spec

    for spec in by_name.values():
        for dependency in sorted(spec.depends_on):
            if dependency == spec.name:
                msg = f"Service '{spec.name}' depends on itself"
                raise DependencyError(msg, service_name=spec.name, cycle=(spec.name,))
            if dependency not in by_name:
                msg = f"Service '{spec.name}' depends on unknown service '{dependency}'"
                raise DependencyError(msg, service_name=spec.name)

    order: list[str] = []
    done: set[str] = set()
    visiting: list[str] = []

    def visit(name: str) -> None:
        if name in done:
            return
        if name in visiting:
            cycle = (*visiting[visiting.index(name) :], name)
            msg = f"Dependency cycle: {' -> '.join(cycle)}"
            raise DependencyError(msg, service_name=name, cycle=cycle)
        visiting.append(name)
        for dependency in sorted(by_name[name].depends_on):
            visit(dependency)
        _ = visiting.pop()
        done.add(name)
        order.append(name)

    for name in by_name:
        visit(name)

    return tuple(order)
