"""Tests for roulette selection, crossover, mutation and the genetic trainer."""

import numpy as np
import pytest

from c4lab.ai.evaluation import NUM_FEATURES, EvaluationWeights
from c4lab.ai.genetic import (GeneticTrainer, crossover, cumulative_fitness, mutate,
                              select_index)
from c4lab.ai.training import random_weights
from c4lab.data.data_manager import PopulationRecord, load_population, save_population


def is_crossover_child(child, population):
    """True if every gene of ``child`` comes from one of some pair of parents."""
    for p1 in population:
        for p2 in population:
            if all(gene in (a, b) for gene, a, b in zip(child, p1, p2)):
                return True
    return False


class TestSelection:

    def test_cumulative_fitness(self):
        assert cumulative_fitness([0.5, 0.0, 1.0]).tolist() == [0.0, 0.5, 0.5, 1.5]

    def test_draw_of_zero_selects_first(self):
        assert select_index(cumulative_fitness([0.5, 0.0, 1.0]), 0.0) == 0

    @pytest.mark.parametrize("draw,expected", [
        (0.25, 0),
        (0.5, 0),
        (0.5000001, 2),
        (1.0, 2),
        (1.5, 2),
    ])
    def test_draw_intervals(self, draw, expected):
        assert select_index(cumulative_fitness([0.5, 0.0, 1.0]), draw) == expected

    def test_zero_fitness_member_never_selected(self, rng):
        cumulative = cumulative_fitness([0.5, 0.0, 1.0])
        picks = {select_index(cumulative, rng.random() * cumulative[-1]) for _ in range(500)}
        assert picks == {0, 2}

    def test_selection_is_fitness_proportionate(self, rng):
        cumulative = cumulative_fitness([1.0, 3.0])
        picks = [select_index(cumulative, rng.random() * cumulative[-1]) for _ in range(4000)]
        assert np.mean(picks) == pytest.approx(0.75, abs=0.05)


class TestVariation:

    def test_crossover_takes_genes_from_parents(self, rng):
        ones = EvaluationWeights.from_iterable([1.0] * NUM_FEATURES)
        twos = EvaluationWeights.from_iterable([2.0] * NUM_FEATURES)
        seen = set()
        for _ in range(50):
            child = crossover(ones, twos, rng)
            assert child.shape == (NUM_FEATURES,)
            assert set(child.tolist()) <= {1.0, 2.0}
            seen.update(child.tolist())
        assert seen == {1.0, 2.0}

    def test_zero_stddev_leaves_genome_alone(self, rng):
        genome = np.arange(NUM_FEATURES, dtype=np.float64)
        mutated = mutate(genome, 0.0, rng)
        assert np.array_equal(mutated, genome)
        assert mutated is not genome

    def test_mutation_adds_noise(self, rng):
        genome = np.zeros(NUM_FEATURES)
        mutated = mutate(genome, 0.03, rng)
        assert not np.array_equal(mutated, genome)
        assert np.all(np.abs(mutated) < 0.5)


class TestGeneticTrainer:

    def test_fresh_population(self):
        trainer = GeneticTrainer(population_size=5, seed=1)
        assert len(trainer.population) == 5
        assert trainer.generation == 0
        for genome in trainer.population:
            assert all(-1.0 <= gene < 1.0 for gene in genome)

    def test_given_population_is_topped_up(self):
        rng = np.random.default_rng(0)
        seeds = [random_weights(rng), random_weights(rng)]
        trainer = GeneticTrainer(population_size=4, population=seeds, seed=2)
        assert trainer.population[:2] == seeds
        assert len(trainer.population) == 4

    def test_given_population_is_trimmed(self):
        rng = np.random.default_rng(0)
        seeds = [random_weights(rng) for _ in range(6)]
        trainer = GeneticTrainer(population_size=3, population=seeds, seed=2)
        assert trainer.population == seeds[:3]

    def test_population_size_must_be_positive(self):
        with pytest.raises(ValueError):
            GeneticTrainer(population_size=0)

    def test_breed_with_no_fitness_draws_uniformly(self):
        trainer = GeneticTrainer(population_size=4, mutation_stddev=0.0, seed=3)
        children = trainer.breed([0.0, 0.0, 0.0, 0.0])
        assert len(children) == 4
        for child in children:
            assert is_crossover_child(child, trainer.population)

    def test_breed_ignores_unfit_members(self):
        population = [EvaluationWeights.from_iterable([float(i)] * NUM_FEATURES) for i in range(3)]
        trainer = GeneticTrainer(population_size=3, population=population,
                                 mutation_stddev=0.0, seed=4)
        for child in trainer.breed([1.0, 0.0, 1.0]):
            assert set(child) <= {0.0, 2.0}

    def test_single_fit_member_parents_every_child(self):
        trainer = GeneticTrainer(population_size=4, mutation_stddev=0.0, seed=5)
        children = trainer.breed([0.0, 1.0, 0.0, 0.0])
        assert children == [trainer.population[1]] * 4

    def test_children_cross_the_selected_parents(self):
        population = [random_weights(np.random.default_rng(i)) for i in range(4)]
        fitness = [0.25, 0.0, 0.5, 0.25]
        trainer = GeneticTrainer(population_size=4, population=population,
                                 mutation_stddev=0.0, seed=6)
        children = trainer.breed(fitness)

        # Replay the same draws: two roulette spins, then the crossover mask
        rng = np.random.default_rng(6)
        cumulative = cumulative_fitness(fitness)
        for child in children:
            g1 = select_index(cumulative, rng.random() * cumulative[-1])
            g2 = select_index(cumulative, rng.random() * cumulative[-1])
            expected = crossover(population[g1], population[g2], rng)
            assert g1 != 1 and g2 != 1
            assert list(child) == expected.tolist()

    def test_evolve_replaces_population(self):
        trainer = GeneticTrainer(population_size=4, rounds=1, depth=1, mutation_stddev=0.0,
                                 seed=7, max_workers=1)
        parents = list(trainer.population)

        best_genome, best_fitness = trainer.evolve()

        assert trainer.generation == 1
        assert len(trainer.population) == 4
        assert best_genome in parents
        assert 0.0 <= best_fitness <= 1.0
        for child in trainer.population:
            assert is_crossover_child(child, parents)
        assert trainer.stats.games == 4

    def test_tournament_counts_games(self):
        trainer = GeneticTrainer(population_size=3, rounds=2, depth=1, seed=8, max_workers=1)
        wins, games = trainer.tournament()
        assert games.sum() >= 2 * 3
        assert np.all(wins <= games)

    def test_resume_from_save_file(self, tmp_path):
        path = str(tmp_path / "population.json")
        trainer = GeneticTrainer(population_size=3, rounds=1, depth=1, save_path=path,
                                 seed=9, max_workers=1)
        trainer.run(1)

        record = load_population(path)
        assert record.generation == 1
        assert record.population == trainer.population

        resumed = GeneticTrainer(population_size=3, save_path=path, seed=10)
        assert resumed.generation == 1
        assert resumed.population == trainer.population
        assert resumed.best_genome == trainer.best_genome

    def test_undersized_save_file_is_topped_up(self, tmp_path):
        path = str(tmp_path / "population.json")
        rng = np.random.default_rng(0)
        saved = [random_weights(rng), random_weights(rng)]
        save_population(path, PopulationRecord(saved, 5, None, float('-inf')))

        trainer = GeneticTrainer(population_size=4, save_path=path, seed=11)
        assert trainer.generation == 5
        assert trainer.population[:2] == saved
        assert len(trainer.population) == 4

    def test_corrupt_save_file_starts_fresh(self, tmp_path):
        path = tmp_path / "population.json"
        path.write_text("{not json")
        trainer = GeneticTrainer(population_size=3, save_path=str(path), seed=12)
        assert trainer.generation == 0
        assert len(trainer.population) == 3
