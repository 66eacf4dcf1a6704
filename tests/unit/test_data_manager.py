"""Tests for saving and loading training state."""

import json
import os

import numpy as np

from c4lab.ai.training import random_weights
from c4lab.data.data_manager import (LMSRecord, PopulationRecord, load_lms_state,
                                     load_population, safe_read_json, safe_write_json,
                                     save_lms_state, save_population)


def reject_constant(name):
    raise ValueError(f"non-standard JSON token {name}")


def make_weights(count, seed=0):
    rng = np.random.default_rng(seed)
    return [random_weights(rng) for _ in range(count)]


class TestJsonFiles:

    def test_write_then_read(self, tmp_path):
        path = str(tmp_path / "nested" / "state.json")
        assert safe_write_json(path, {'a': [1, 2]})
        assert safe_read_json(path) == {'a': [1, 2]}
        assert not os.path.exists(path + ".tmp")

    def test_missing_file(self, tmp_path):
        assert safe_read_json(str(tmp_path / "missing.json")) is None

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("[1, 2")
        assert safe_read_json(str(path)) is None

    def test_unserializable_data(self, tmp_path):
        path = str(tmp_path / "state.json")
        assert not safe_write_json(path, {'bad': object()})
        assert not os.path.exists(path)


class TestPopulationFiles:

    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "population.json")
        population = make_weights(4)
        record = PopulationRecord(population, 3, population[1], 0.75)

        assert save_population(path, record)
        assert load_population(path) == record

    def test_no_champion_yet(self, tmp_path):
        path = str(tmp_path / "population.json")
        save_population(path, PopulationRecord(make_weights(2), 0, None, float('-inf')))

        record = load_population(path)
        assert record.best_genome is None
        assert record.best_fitness == float('-inf')

    def test_no_champion_is_stored_as_strict_json(self, tmp_path):
        path = tmp_path / "population.json"
        save_population(str(path), PopulationRecord(make_weights(2), 0, None, float('-inf')))

        data = json.loads(path.read_text(), parse_constant=reject_constant)
        assert data['best_fitness'] is None
        assert data['best_genome'] is None

    def test_missing_file(self, tmp_path):
        assert load_population(str(tmp_path / "missing.json")) is None

    def test_wrong_vector_length(self, tmp_path):
        path = tmp_path / "population.json"
        path.write_text(json.dumps({'kind': 'genetic', 'population': [[0.1, 0.2]]}))
        assert load_population(str(path)) is None

    def test_lms_file_is_not_a_population(self, tmp_path):
        path = str(tmp_path / "state.json")
        save_lms_state(path, LMSRecord(make_weights(2), 1, None, float('inf')))
        assert load_population(path) is None


class TestLMSFiles:

    def test_unset_error_is_stored_as_strict_json(self, tmp_path):
        path = tmp_path / "lms.json"
        save_lms_state(str(path), LMSRecord(make_weights(2), 0, None, float('inf')))

        data = json.loads(path.read_text(), parse_constant=reject_constant)
        assert data['least_error'] is None
        assert load_lms_state(str(path)).least_error == float('inf')

    def test_round_trip(self, tmp_path):
        path = str(tmp_path / "lms.json")
        coefficients = make_weights(3, seed=1)
        record = LMSRecord(coefficients, 7, coefficients[2], 0.125)

        assert save_lms_state(path, record)
        assert load_lms_state(path) == record

    def test_missing_coefficients(self, tmp_path):
        path = tmp_path / "lms.json"
        path.write_text(json.dumps({'kind': 'lms', 'iteration': 2}))
        assert load_lms_state(str(path)) is None

    def test_population_file_is_not_lms_state(self, tmp_path):
        path = str(tmp_path / "population.json")
        save_population(path, PopulationRecord(make_weights(2), 1, None, 0.0))
        assert load_lms_state(path) is None
