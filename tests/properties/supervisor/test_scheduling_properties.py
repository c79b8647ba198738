from hypothesis import given, strategies as st

from boxinit.supervisor import (
    ExponentialBackoff,
    LinearBackoff,
    ServiceSpec,
    resolve_start_order,
)

delays = st.floats(min_value=0.0, max_value=100.0, allow_nan=False)
jitters = st.floats(min_value=0.0, max_value=1.0, allow_nan=False)
attempts = st.integers(min_value=0, max_value=10_000)


@given(base=delays, max_delay=delays, jitter=jitters, attempt=attempts)
def test_exponential_delay_is_bounded(
    base: float, max_delay: float, jitter: float, attempt: int
) -> None:
    delay = ExponentialBackoff(base=base, max_delay=max_delay, jitter=jitter).delay(
        attempt
    )

    assert 0.0 <= delay <= max_delay * (1 + jitter / 2) + 1e-9


@given(base=delays, max_delay=delays, attempt=attempts)
def test_exponential_delay_never_decreases_without_jitter(
    base: float, max_delay: float, attempt: int
) -> None:
    backoff = ExponentialBackoff(base=base, max_delay=max_delay, jitter=0.0)

    assert backoff.delay(attempt) <= backoff.delay(attempt + 1)


@given(base=delays, max_delay=delays, jitter=jitters, attempt=attempts)
def test_linear_delay_is_bounded(
    base: float, max_delay: float, jitter: float, attempt: int
) -> None:
    delay = LinearBackoff(base=base, max_delay=max_delay, jitter=jitter).delay(attempt)

    assert 0.0 <= delay <= max_delay * (1 + jitter / 2) + 1e-9


@st.composite
def acyclic_graphs(draw: st.DrawFn) -> list[ServiceSpec]:
    """Services whose dependencies only point at earlier-declared services."""
    count = draw(st.integers(min_value=0, max_value=12))
    names = [f"svc{i}" for i in range(count)]
    specs: list[ServiceSpec] = []
    for index, name in enumerate(names):
        depends_on = draw(st.frozensets(st.sampled_from(names[:index]))) if index else frozenset()
        specs.append(ServiceSpec(name=name, command=("true",), depends_on=depends_on))
    return draw(st.permutations(specs))


@given(specs=acyclic_graphs())
def test_start_order_respects_every_dependency(specs: list[ServiceSpec]) -> None:
    order = resolve_start_order(specs)

    assert sorted(order) == sorted(spec.name for spec in specs)
    position = {name: index for index, name in enumerate(order)}
    for spec in specs:
        for dependency in spec.depends_on:
            assert position[dependency] < position[spec.name]
