"""
data_manager.py - Persistence of training state

Genetic populations and LMS coefficient sets are stored as JSON records.
Files are read and written under a file lock, and writes go through a
temporary file that replaces the target in one step, so an interrupted run
never leaves a half-written record behind.

Load functions never raise for a missing or unreadable file: they log the
problem and return None, and the trainers start from fresh random state.
"""

import json
import math
import os
import shutil
from typing import Any, List, NamedTuple, Optional

import filelock

from c4lab.debug import debug
from c4lab.ai.evaluation import EvaluationWeights

GENETIC_KIND = "genetic"
LMS_KIND = "lms"


class PopulationRecord(NamedTuple):
    """Saved state of a genetic run."""
    population: List[EvaluationWeights]
    generation: int
    best_genome: Optional[EvaluationWeights]
    best_fitness: float


class LMSRecord(NamedTuple):
    """Saved state of an LMS run."""
    coefficients: List[EvaluationWeights]
    iteration: int
    best_coefficients: Optional[EvaluationWeights]
    least_error: float


def safe_read_json(file_path: str) -> Optional[Any]:
    """
    Read a JSON file under its lock.

    Returns:
        Parsed data, or None if the file is missing or not valid JSON
    """
    if not os.path.exists(file_path):
        debug.warning(f"No saved state at {file_path}", "data")
        return None

    with filelock.FileLock(f"{file_path}.lock"):
        try:
            with open(file_path, 'r') as f:
                return json.load(f)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            debug.error(f"Error decoding JSON from {file_path}: {e}", "data")
            return None
        except OSError as e:
            debug.error(f"Error reading {file_path}: {e}", "data")
            return None


def safe_write_json(file_path: str, data: Any) -> bool:
    """
    Write data as JSON, replacing the file atomically.

    Returns:
        True if successful, False otherwise
    """
    directory = os.path.dirname(os.path.abspath(file_path))
    os.makedirs(directory, exist_ok=True)

    with filelock.FileLock(f"{file_path}.lock"):
        temp_file = f"{file_path}.tmp"
        try:
            with open(temp_file, 'w') as f:
                json.dump(data, f, indent=2, allow_nan=False)
            shutil.move(temp_file, file_path)
            return True
        except (OSError, TypeError, ValueError) as e:
            debug.error(f"Error writing to {file_path}: {e}", "data")
            return False


def _weights_list(raw: Any) -> List[EvaluationWeights]:
    if not isinstance(raw, list):
        raise ValueError("expected a list of coefficient vectors")
    return [EvaluationWeights.from_iterable(entry) for entry in raw]


def _optional_weights(raw: Any) -> Optional[EvaluationWeights]:
    return None if raw is None else EvaluationWeights.from_iterable(raw)


def _finite_or_none(value: float) -> Optional[float]:
    # inf marks "no champion yet"; strict JSON has no token for it
    value = float(value)
    return value if math.isfinite(value) else None


def _float_or(raw: Any, default: float) -> float:
    return default if raw is None else float(raw)


def save_population(file_path: str, record: PopulationRecord) -> bool:
    """Save a genetic population, generation counter and champion."""
    data = {
        'kind': GENETIC_KIND,
        'population': [genome.to_list() for genome in record.population],
        'generation': int(record.generation),
        'best_genome': record.best_genome.to_list() if record.best_genome is not None else None,
        'best_fitness': _finite_or_none(record.best_fitness),
    }
    if safe_write_json(file_path, data):
        debug.debug(f"Saved generation {record.generation} to {file_path}", "data")
        return True
    return False


def load_population(file_path: str) -> Optional[PopulationRecord]:
    """
    Load a genetic population.

    Returns:
        The saved record, or None if the file is missing or malformed
    """
    data = safe_read_json(file_path)
    if data is None:
        return None
    try:
        if data.get('kind', GENETIC_KIND) != GENETIC_KIND:
            raise ValueError(f"record kind is {data.get('kind')!r}")
        record = PopulationRecord(
            population=_weights_list(data['population']),
            generation=int(data.get('generation', 0)),
            best_genome=_optional_weights(data.get('best_genome')),
            best_fitness=_float_or(data.get('best_fitness'), float('-inf')),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        debug.error(f"Corrupt population file {file_path}: {e}", "data")
        return None
    debug.info(f"Loaded {len(record.population)} genomes (generation {record.generation}) "
               f"from {file_path}", "data")
    return record


def save_lms_state(file_path: str, record: LMSRecord) -> bool:
    """Save LMS coefficient sets, iteration counter and best coefficients."""
    data = {
        'kind': LMS_KIND,
        'coefficients': [coeffs.to_list() for coeffs in record.coefficients],
        'iteration': int(record.iteration),
        'best_coefficients': (record.best_coefficients.to_list()
                              if record.best_coefficients is not None else None),
        'least_error': _finite_or_none(record.least_error),
    }
    if safe_write_json(file_path, data):
        debug.debug(f"Saved iteration {record.iteration} to {file_path}", "data")
        return True
    return False


def load_lms_state(file_path: str) -> Optional[LMSRecord]:
    """
    Load LMS coefficient sets.

    Returns:
        The saved record, or None if the file is missing or malformed
    """
    data = safe_read_json(file_path)
    if data is None:
        return None
    try:
        if data.get('kind') != LMS_KIND:
            raise ValueError(f"record kind is {data.get('kind')!r}")
        record = LMSRecord(
            coefficients=_weights_list(data['coefficients']),
            iteration=int(data.get('iteration', 0)),
            best_coefficients=_optional_weights(data.get('best_coefficients')),
            least_error=_float_or(data.get('least_error'), float('inf')),
        )
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        debug.error(f"Corrupt LMS state file {file_path}: {e}", "data")
        return None
    debug.info(f"Loaded {len(record.coefficients)} coefficient sets (iteration {record.iteration}) "
               f"from {file_path}", "data")
    return record
