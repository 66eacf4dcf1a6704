#!/usr/bin/env python3
"""
run.py - Main entry point for the c4lab Connect Four system
"""

import argparse
import sys

from c4lab.debug import debug, DebugLevel
from c4lab.utils import Piece


def configure_debug(args):
    """Configure debug level based on args.debug or args.debug_level."""
    if args.debug:
        debug.configure(level=DebugLevel.DEBUG)
    else:
        debug.set_from_string(args.debug_level)


# --- Game Command Handler ---

def handle_game_play(args):
    """Handle the 'game play' command."""
    from c4lab.interfaces.cli import play_against_ai

    human_color = Piece.RED if args.human_color == 'red' else Piece.BLACK
    play_against_ai(depth=args.depth, human_color=human_color)


# --- AI Command Handlers ---

def handle_ai_ga(args):
    """Handle the 'ai ga' command."""
    from c4lab.ai.genetic import GeneticTrainer

    trainer = GeneticTrainer(
        population_size=args.population_size,
        rounds=args.rounds,
        depth=args.depth,
        mutation_stddev=args.mutation_stddev,
        save_path=args.population,
        seed=args.seed,
    )
    print(f"Starting genetic training at generation {trainer.generation}")
    try:
        best_genome, best_fitness = trainer.run(args.generations)
    except KeyboardInterrupt:
        print("\nTraining interrupted. Last completed generation is saved.")
        return
    print(f"Generation:  {trainer.generation - 1}")
    print(f"Best genome: {best_genome.to_list() if best_genome else None}")
    print(f"Fitness:     {best_fitness}")


def handle_ai_lms(args):
    """Handle the 'ai lms' command."""
    from c4lab.ai.lms import LMSTrainer, TargetPolicy

    trainer = LMSTrainer(
        population_size=args.population_size,
        depth=args.depth,
        learning_rate=args.learning_rate,
        target_policy=TargetPolicy(args.target),
        save_path=args.state,
        seed=args.seed,
    )
    print(f"Starting LMS training at iteration {trainer.iteration}")
    try:
        best_coeffs, least_error = trainer.run(args.iterations)
    except KeyboardInterrupt:
        print("\nTraining interrupted. Last completed iteration is saved.")
        return
    print(f"Iteration:   {trainer.iteration - 1}")
    print(f"Best coeffs: {best_coeffs.to_list() if best_coeffs else None}")
    print(f"Error:       {least_error}")


# --- Main Entry Point ---

def main(argv=None):
    """Main entry point for the c4lab system."""
    from c4lab.ai.genetic import POPULATION_SIZE, BATTLE_COUNT, MUTATION_STDDEV
    from c4lab.ai.lms import POPULATION_SIZE as LMS_POPULATION_SIZE, LEARNING_RATE
    from c4lab.ai.training import SEARCH_DEPTH

    parser = argparse.ArgumentParser(
        description='Connect Four alpha-beta agents tuned by self-play',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
    Examples:

    # Play against the built-in agent
    python run.py game play --depth 6

    # Evolve a population, resuming from and saving to population.json
    python run.py ai ga --population population.json --generations 10

    # Run LMS learning with state kept in lms.json
    python run.py ai lms --state lms.json --iterations 5
    """
    )
    parser.add_argument('--debug', action='store_true',
                        help='Enable debug mode (equivalent to --debug_level debug)')
    parser.add_argument('--debug_level',
                        choices=['none', 'error', 'warning', 'info', 'debug', 'trace'],
                        default='info', help='Logging verbosity')
    subparsers = parser.add_subparsers(dest='component', help='Component to run')

    game_parser = subparsers.add_parser('game', help='Play Connect Four in the console')
    game_parser.add_argument('command', choices=['play'], help='Game command')
    game_parser.add_argument('--depth', type=int, default=8, help='Agent search depth')
    game_parser.add_argument('--human-color', choices=['red', 'black'], default='red',
                             help='Colour played by the human (red moves first)')

    ai_parser = subparsers.add_parser('ai', help='Train evaluation functions by self-play')
    ai_parser.add_argument('command', choices=['ga', 'lms'],
                           help='ga: genetic algorithm, lms: least-mean-squares learning')
    ai_parser.add_argument('--depth', type=int, default=SEARCH_DEPTH,
                           help='Search depth of the training players')
    ai_parser.add_argument('--seed', type=int, default=None, help='Random seed')

    ga_group = ai_parser.add_argument_group('Genetic options')
    ga_group.add_argument('--population', type=str, default=None,
                          help='Population file to resume from and save to')
    ga_group.add_argument('--generations', type=int, default=1, help='Generations to run')
    ga_group.add_argument('--rounds', type=int, default=BATTLE_COUNT,
                          help='Tournament rounds per generation')
    ga_group.add_argument('--mutation-stddev', type=float, default=MUTATION_STDDEV,
                          help='Standard deviation of mutation noise')

    lms_group = ai_parser.add_argument_group('LMS options')
    lms_group.add_argument('--state', type=str, default=None,
                           help='Coefficient file to resume from and save to')
    lms_group.add_argument('--iterations', type=int, default=1, help='Iterations to run')
    lms_group.add_argument('--learning-rate', type=float, default=LEARNING_RATE,
                           help='LMS step size mu')
    lms_group.add_argument('--target', choices=['bootstrap', 'outcome'], default='bootstrap',
                           help='Learning target: successor scores or final game result')

    ai_parser.add_argument('--population-size', type=int, default=None,
                           help=f'Number of candidates (default {POPULATION_SIZE} for ga, '
                                f'{LMS_POPULATION_SIZE} for lms)')

    args = parser.parse_args(argv)
    configure_debug(args)

    if args.component == 'game':
        handle_game_play(args)
    elif args.component == 'ai':
        if args.command == 'ga':
            if args.population_size is None:
                args.population_size = POPULATION_SIZE
            handle_ai_ga(args)
        else:
            if args.population_size is None:
                args.population_size = LMS_POPULATION_SIZE
            handle_ai_lms(args)
    else:
        parser.print_help()
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
