"""Property-based tests for purge ordering using Hypothesis.

Generates random acyclic dependency tables and checks that the computed
plan always purges dependents before the entities they reference.
"""

from __future__ import annotations

from hypothesis import given, settings
from hypothesis import strategies as st

from geostore.harness.teardown import PurgePlan

SETTINGS = settings(max_examples=200, deadline=None)


@st.composite
def acyclic_dependencies(draw) -> dict[str, tuple[str, ...]]:
    """Entities e0..eN where e_i may only depend on e_j with j < i, declared in random order."""
    size = draw(st.integers(min_value=1, max_value=12))
    names = [f"e{i}" for i in range(size)]
    table: dict[str, tuple[str, ...]] = {}
    for i, name in enumerate(names):
        deps = draw(st.lists(st.sampled_from(names[:i]), unique=True)) if i else []
        table[name] = tuple(deps)
    order = draw(st.permutations(names))
    return {name: table[name] for name in order}


@SETTINGS
@given(dependencies=acyclic_dependencies())
def test_dependencies_always_come_first(dependencies: dict[str, tuple[str, ...]]):
    plan = PurgePlan.from_dependencies(dependencies)
    assert sorted(plan.order) == sorted(dependencies)
    for entity, deps in dependencies.items():
        for dep in deps:
            assert plan.position(dep) < plan.position(entity)


@SETTINGS
@given(dependencies=acyclic_dependencies())
def test_plan_is_stable(dependencies: dict[str, tuple[str, ...]]):
    assert PurgePlan.from_dependencies(dependencies) == PurgePlan.from_dependencies(dict(dependencies))
