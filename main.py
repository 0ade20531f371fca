# main.py
"""
Main entry point for the particle formation animation.

This script orchestrates the entire animation lifecycle:
1. Loads configuration from `config.json` (or the file given by --config).
2. Initializes the logging system.
3. Builds the parameter snapshot, the window and the simulation.
4. Runs the main loop: sample pointers, step, draw.
5. Handles clean shutdown.
"""
import argparse
import cProfile
import io
import logging
import pstats

from utils import setup_logging, load_config


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Particle formation animation")
    parser.add_argument("--config", default="config.json", help="Path to the JSON configuration file")
    parser.add_argument("--preset", default=None, help="Parameter preset: desktop or mobile")
    parser.add_argument("--state", default=None, help="Run a single state instead of the cycle")
    return parser.parse_args(argv)


def main(argv=None):
    """
    The main function to run the animation.
    """
    args = parse_args(argv)

    # Logging is not set up yet, so we use a print for this one error.
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"FATAL: Could not load {args.config}. Error: {e}")
        return

    setup_logging(config)

    logging.info("--- Particle Formations Starting ---")

    sim_params = dict(config.get('simulation_parameters', {}))
    run_params = config.get('run_control', {})
    vis_params = config.get('visualization', {})
    if args.state is not None:
        sim_params['single_state'] = args.state

    from config import SimulationConfig
    from constants import FPS
    from interactions import PointerTracker
    from simulation import Simulation
    from visualization import Visualizer

    sim_config = SimulationConfig.from_dict(sim_params, preset=args.preset)

    # The visualizer determines the canvas dimensions.
    visualizer = Visualizer(vis_params)
    sim = Simulation(sim_config, visualizer.sim_width, visualizer.sim_height)
    tracker = PointerTracker(vis_params.get('pointer_min_move', 2.0))

    log_throttle = max(1, int(run_params.get('log_throttle_steps', 600)))
    max_steps = int(run_params.get('max_steps', 0))  # 0 runs until the window closes
    profiler = cProfile.Profile() if run_params.get('profile', False) else None

    running = True
    step_num = 0

    if profiler is not None:
        profiler.enable()
    while running:
        raw_pointers = visualizer.pointers()
        sim.step(tracker.sample(raw_pointers), present=list(raw_pointers.values()))
        step_num += 1

        # The visualizer returns False once the user quits.
        if not visualizer.draw(sim.frame(), sim):
            running = False

        if step_num % log_throttle == 0:
            logging.info(f"Step {step_num} | State: {sim.state_name}")
            logging.debug(f"Step {step_num} | Mean speed: {sim.mean_speed():.4f}")

        if max_steps and step_num >= max_steps:
            logging.info(f"Reached max_steps ({max_steps}). Stopping animation.")
            running = False

        visualizer.clock.tick(FPS)
    if profiler is not None:
        profiler.disable()

    visualizer.close()
    logging.info("Animation loop finished.")

    if profiler is not None:
        logging.info("--- Performance Profile ---")
        s = io.StringIO()
        # Sort by cumulative time spent in the function
        stats = pstats.Stats(profiler, stream=s).sort_stats('cumtime')
        stats.print_stats(20)
        logging.info(f"\n{s.getvalue()}")

    logging.info("--- Particle Formations Shutting Down ---")


if __name__ == "__main__":
    main()
