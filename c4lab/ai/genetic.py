"""
genetic.py - Genetic algorithm over evaluation weights

Each generation runs a tournament between the population members, turns win
fractions into fitness, and breeds a complete replacement population by
fitness-proportionate (roulette wheel) selection, uniform crossover and
Gaussian mutation.
"""

from typing import List, Optional, Sequence, Tuple

import numpy as np

from c4lab.debug import debug
from c4lab.utils import Piece
from c4lab.ai.evaluation import NUM_FEATURES, EvaluationWeights, LinearEvaluator
from c4lab.ai.training import SEARCH_DEPTH, TrainingStats, play_match, random_weights
from c4lab.data.data_manager import PopulationRecord, load_population, save_population

POPULATION_SIZE = 100
BATTLE_COUNT = 5
MUTATION_STDDEV = 0.03


def cumulative_fitness(fitness: Sequence[float]) -> np.ndarray:
    """
    Roulette wheel boundaries for ``fitness``.

    Returns:
        Array F of length N + 1 with F[0] = 0 and F[i + 1] = F[i] + fitness[i]
    """
    return np.concatenate(([0.0], np.cumsum(np.asarray(fitness, dtype=np.float64))))


def select_index(cumulative: np.ndarray, draw: float) -> int:
    """
    Map a draw in [0, F[-1]] to a population index.

    A draw in (F[i], F[i + 1]] selects i; a draw of exactly 0 selects 0.
    """
    if draw <= 0:
        return 0
    index = int(np.searchsorted(cumulative, draw, side='left')) - 1
    return min(max(index, 0), len(cumulative) - 2)


def crossover(parent1: EvaluationWeights, parent2: EvaluationWeights,
              rng: np.random.Generator) -> np.ndarray:
    """Uniform crossover: each gene comes from either parent with p = 0.5."""
    mask = rng.random(NUM_FEATURES) < 0.5
    return np.where(mask, parent1.as_array(), parent2.as_array())


def mutate(genome: np.ndarray, stddev: float, rng: np.random.Generator) -> np.ndarray:
    """Add independent N(0, stddev) noise to every gene."""
    if stddev <= 0:
        return genome.copy()
    return genome + rng.normal(0.0, stddev, size=genome.shape)


class GeneticTrainer:
    """
    Evolve evaluation weights by self-play tournaments.

    Attributes:
        population: Current generation, replaced wholesale by ``evolve``
        generation: Number of completed generations
        best_genome: Champion of the last completed generation
        best_fitness: Fitness of that champion
    """

    def __init__(self, population_size: int = POPULATION_SIZE,
                 rounds: int = BATTLE_COUNT,
                 depth: int = SEARCH_DEPTH,
                 mutation_stddev: float = MUTATION_STDDEV,
                 population: Optional[Sequence[EvaluationWeights]] = None,
                 save_path: Optional[str] = None,
                 seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 max_workers: Optional[int] = None):
        """
        Initialize the trainer.

        Args:
            population_size: Number of genomes N
            rounds: Tournament rounds per generation
            depth: Search depth of the tournament players
            mutation_stddev: Standard deviation of the mutation noise
            population: Starting genomes; topped up or trimmed to N
            save_path: JSON file to resume from and save to after each generation
            seed: Seed for a fresh random generator
            rng: Random generator to use instead of ``seed``
            max_workers: Root fan-out threads per search
        """
        if population_size < 1:
            raise ValueError("Population needs at least one genome")
        self.population_size = population_size
        self.rounds = rounds
        self.depth = depth
        self.mutation_stddev = mutation_stddev
        self.save_path = save_path
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.max_workers = max_workers
        self.stats = TrainingStats()

        self.generation = 0
        self.best_genome: Optional[EvaluationWeights] = None
        self.best_fitness = float('-inf')

        if population is None and save_path is not None:
            record = load_population(save_path)
            if record is not None:
                population = record.population
                self.generation = record.generation
                self.best_genome = record.best_genome
                self.best_fitness = record.best_fitness
            else:
                debug.info(f"Starting a fresh population for {save_path}", "ga")
        self.population = self._fill_population(population or [])

    def _fill_population(self, genomes: Sequence[EvaluationWeights]) -> List[EvaluationWeights]:
        population = list(genomes)[:self.population_size]
        if len(population) < self.population_size:
            debug.debug(f"Adding {self.population_size - len(population)} random genomes", "ga")
        while len(population) < self.population_size:
            population.append(random_weights(self.rng))
        return population

    def tournament(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Play ``rounds`` rounds of random pairings.

        In each round member i plays RED against member order[i] for a fresh
        permutation ``order``.

        Returns:
            (wins, games) arrays indexed by population member
        """
        size = self.population_size
        wins = np.zeros(size, dtype=np.int64)
        games = np.zeros(size, dtype=np.int64)
        evaluators = [LinearEvaluator(genome) for genome in self.population]

        for battle in range(self.rounds):
            order = self.rng.permutation(size)
            for g1 in range(size):
                g2 = int(order[g1])
                debug.debug(f"Generation {self.generation}, round {battle + 1}/{self.rounds}, "
                            f"genome {g1 + 1}/{size} vs {g2 + 1}", "ga")
                winner = play_match(evaluators[g1], evaluators[g2], self.depth,
                                    max_workers=self.max_workers)
                self.stats.add_game(winner)
                games[g1] += 1
                if g2 != g1:
                    games[g2] += 1
                if winner == Piece.RED:
                    wins[g1] += 1
                elif winner == Piece.BLACK:
                    wins[g2] += 1
        return wins, games

    def breed(self, fitness: Sequence[float]) -> List[EvaluationWeights]:
        """
        Produce a full replacement population from ``fitness``.

        Parents are drawn by roulette wheel; if no member has any fitness,
        parents are drawn uniformly instead.
        """
        cumulative = cumulative_fitness(fitness)
        total = float(cumulative[-1])
        offspring = []
        for _ in range(self.population_size):
            if total > 0:
                g1 = select_index(cumulative, self.rng.random() * total)
                g2 = select_index(cumulative, self.rng.random() * total)
            else:
                g1, g2 = (int(i) for i in self.rng.integers(0, self.population_size, size=2))
            child = crossover(self.population[g1], self.population[g2], self.rng)
            child = mutate(child, self.mutation_stddev, self.rng)
            offspring.append(EvaluationWeights.from_iterable(child))
        return offspring

    def evolve(self) -> Tuple[EvaluationWeights, float]:
        """
        Run one generation: tournament, fitness, selection and replacement.

        Returns:
            The generation's champion genome and its fitness
        """
        debug.start_timer(f"generation-{self.generation}")
        wins, games = self.tournament()
        fitness = np.divide(wins, games, out=np.zeros(len(wins), dtype=np.float64),
                            where=games > 0)

        best_index = int(np.argmax(fitness))
        self.best_genome = self.population[best_index]
        self.best_fitness = float(fitness[best_index])

        self.population = self.breed(fitness)
        self.stats.add_generation(self.generation, self.best_fitness,
                                  mean_fitness=float(fitness.mean()))
        elapsed = debug.end_timer(f"generation-{self.generation}", "ga")

        debug.info(f"Generation {self.generation}: best fitness {self.best_fitness:.3f}, "
                   f"best genome {self.best_genome.to_list()} ({elapsed or 0.0:.1f}s)", "ga")
        self.generation += 1
        self.save()
        return self.best_genome, self.best_fitness

    def run(self, generations: int) -> Tuple[Optional[EvaluationWeights], float]:
        """Evolve for ``generations`` generations and return the last champion."""
        for _ in range(generations):
            self.evolve()
        return self.best_genome, self.best_fitness

    def save(self) -> bool:
        if self.save_path is None:
            return False
        return save_population(self.save_path, PopulationRecord(
            population=self.population,
            generation=self.generation,
            best_genome=self.best_genome,
            best_fitness=self.best_fitness,
        ))
