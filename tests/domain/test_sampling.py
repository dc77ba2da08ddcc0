"""Tests for abm_kernel.domain.sampling.sample_agents."""

from __future__ import annotations

import pytest

from abm_kernel.config.types import ModelConfig
from abm_kernel.domain.agent import AgentSchema, FieldSpec
from abm_kernel.domain.grid import GridSpace
from abm_kernel.domain.sampling import sample_agents
from abm_kernel.simulation.model import Model


def _population(seed: int = 0, n: int = 10) -> Model:
    schema = AgentSchema(
        "Haploid",
        fields=(FieldSpec("trait", float), FieldSpec("tags", list, default_factory=list)),
    )
    model = Model(schema, config=ModelConfig(seed=seed))
    for i in range(n):
        model.add_agent(trait=float(i))
    return model


class TestSampleAgents:
    def test_replaces_population_with_fresh_ids(self) -> None:
        model = _population()
        new_ids = sample_agents(model, 15)
        assert new_ids == list(range(11, 26))
        assert model.store.ids() == new_ids

    def test_without_replacement_is_a_permutation(self) -> None:
        model = _population()
        sample_agents(model, 10, replace=False)
        traits = sorted(a.trait for a in model.agents(snapshot=True))
        assert traits == [float(i) for i in range(10)]

    def test_without_replacement_too_many(self) -> None:
        model = _population()
        with pytest.raises(ValueError):
            sample_agents(model, 11, replace=False)
        assert len(model) == 10

    def test_weighted_without_replacement_rejected(self) -> None:
        with pytest.raises(ValueError):
            sample_agents(_population(), 5, "trait", replace=False)

    def test_negative_weight_rejected(self) -> None:
        model = _population()
        with pytest.raises(ValueError):
            sample_agents(model, 5, lambda agent: agent.trait - 5.0)

    def test_zero_weight_never_drawn(self) -> None:
        model = _population()
        sample_agents(model, 200, "trait")
        assert all(a.trait > 0.0 for a in model.agents(snapshot=True))

    def test_copies_do_not_share_mutable_fields(self) -> None:
        model = _population(n=1)
        sample_agents(model, 2)
        a, b = model.agents(snapshot=True)
        a.tags.append("x")
        assert b.tags == []

    def test_empty_population(self) -> None:
        model = _population(n=0)
        assert sample_agents(model, 0) == []
        with pytest.raises(ValueError):
            sample_agents(model, 1)

    def test_positions_are_copied(self) -> None:
        schema = AgentSchema.of("Cell", trait=float)
        model = Model(schema, GridSpace((4, 4)), config=ModelConfig(seed=2))
        model.add_agent((1, 2), trait=1.0)
        model.add_agent((3, 0), trait=2.0)
        sample_agents(model, 6)
        for agent in model.agents(snapshot=True):
            assert agent.pos == {1.0: (1, 2), 2.0: (3, 0)}[agent.trait]
            assert agent.id in model.space.ids_in_position(agent.pos)

    def test_deterministic_for_seed(self) -> None:
        runs = []
        for _ in range(2):
            model = _population(seed=4)
            sample_agents(model, 10, "trait")
            runs.append([a.trait for a in model.agents(snapshot=True)])
        assert runs[0] == runs[1]
