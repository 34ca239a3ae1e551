"""
Project Pandora - CLI Entry Point

Usage:
    python main.py --mode single --config config/default_config.json
    python main.py --mode single --ruleset minimal --generations 300
    python main.py --mode sweep --config config/sweep_template.json
    python main.py --ui
"""

import argparse
import sys
import time
from pathlib import Path


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Project Pandora - grid artificial life with energy, combat and a warrior caste",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py --ui                                              Launch Streamlit UI
  python main.py --mode single --config config/default_config.json Run one simulation
  python main.py --mode sweep --config config/sweep_template.json  Run parameter sweep
        """,
    )
    parser.add_argument(
        "--mode",
        choices=["single", "sweep"],
        default=None,
        help="'single' for one simulation, 'sweep' for a parameter sweep",
    )
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="JSON config (single: simulation config, sweep: sweep file)",
    )
    parser.add_argument(
        "--ui",
        action="store_true",
        help="Launch the Streamlit web UI (ignores the other flags)",
    )
    parser.add_argument("--seed", type=int, default=None, help="Override the random seed")
    parser.add_argument(
        "--generations",
        type=int,
        default=None,
        help="Generations to run in single mode (default: sweep.max_generations)",
    )
    parser.add_argument(
        "--ruleset",
        choices=["full", "minimal"],
        default=None,
        help="Override the ruleset",
    )
    parser.add_argument("--output", type=str, default=None, help="Override the output directory")
    return parser.parse_args()


def launch_ui() -> None:
    """Launch the Streamlit web UI."""
    import subprocess
    ui_path = Path(__file__).parent / "pandora" / "ui" / "app.py"
    if not ui_path.exists():
        print(f"Error: UI app not found at {ui_path}")
        sys.exit(1)
    subprocess.run(
        [
            sys.executable, "-m", "streamlit", "run", str(ui_path),
            "--server.port=8501",
            "--server.headless=true",
            "--browser.gatherUsageStats=false",
        ],
        check=True,
    )


def run_single(config_path: str | None, seed_override: int | None = None,
               max_generations: int | None = None, ruleset: str | None = None,
               output_dir: str | None = None) -> None:
    """Run a single simulation and log it to a run directory."""
    from pandora.core.config import get_default_config, load_config
    from pandora.logging.run_manager import RunManager
    from pandora.simulation.engine import SimulationEngine
    from pandora.simulation.metrics import MetricsCollector

    config = load_config(config_path) if config_path else get_default_config()
    if seed_override is not None:
        config.world.seed = seed_override
    if ruleset is not None:
        config.rules.ruleset = ruleset
    if output_dir is not None:
        config.viz.output_dir = output_dir
    gen_limit = max_generations if max_generations is not None else config.sweep.max_generations

    print("[Pandora] Single run")
    print(f"  Config: {config_path or '(defaults)'}")
    print(f"  Ruleset: {config.rules.ruleset}")
    print(f"  Grid: {config.world.width}x{config.world.height}")
    print(f"  Seed: {config.world.seed}")
    print(f"  Max Generations: {gen_limit}")
    print(f"  Output: {config.viz.output_dir}")
    print()

    try:
        engine = SimulationEngine(config)
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)
    engine.initialize()
    metrics = MetricsCollector(config)
    run_manager = RunManager(config)
    initial_live = engine.live_count

    def on_generation(gen_number: int, eng: SimulationEngine) -> None:
        kpis = metrics.collect(eng.grid, eng.statistics(), eng.get_accumulated_stats())
        eng.reset_accumulated_stats()
        run_manager.log_generation(kpis)
        print(
            f"  Gen {gen_number:4d} | Live: {kpis['live_count']:6d} "
            f"(A {kpis['alive_count']} / M {kpis['mutated_count']} / W {kpis['warrior_count']}) "
            f"| Avg Energy: {kpis['avg_energy']:.1f}"
        )

    engine.on_generation = on_generation

    start_time = time.time()
    result = engine.run(max_generations=gen_limit)
    elapsed = time.time() - start_time

    final = result.final_statistics
    print()
    print("[Result]")
    print(f"  Generations: {result.total_generations}")
    print(f"  {final.overlay_text()}")
    print(f"  Extinct: {result.extinct}")
    print(f"  Elapsed: {elapsed:.1f}s")

    run_manager.finalize({
        "ruleset": config.rules.ruleset,
        "seed": config.world.seed,
        "total_generations": result.total_generations,
        "initial_live": initial_live,
        "final_live": result.final_live_count,
        "final_alive": final.alive_count,
        "final_mutated": final.mutated_count,
        "final_warrior": final.warrior_count,
        "extinct": result.extinct,
        "extinction_generation": result.extinction_generation,
        "elapsed_seconds": round(elapsed, 2),
    })
    print(f"  Output saved to: {run_manager.run_dir}")


def run_sweep(config_path: str | None, seed_override: int | None = None,
              ruleset: str | None = None, output_dir: str | None = None) -> None:
    """Run a parameter sweep and export its results."""
    from pandora.core.config import get_default_config
    from pandora.simulation.sweep import ParameterSweep, SweepSettings

    sweep_path = config_path or "config/sweep_template.json"
    base_config = get_default_config()
    if ruleset is not None:
        base_config.rules.ruleset = ruleset

    settings = SweepSettings.from_file(sweep_path, defaults=base_config.sweep)
    if seed_override is not None:
        settings.base_seed = seed_override
    errors = settings.validate()
    if errors:
        print("Error: invalid sweep settings:")
        for err in errors:
            print(f"  - {err}")
        sys.exit(1)

    sweep = ParameterSweep(settings, base_config=base_config)

    print("[Pandora] Parameter sweep")
    print(f"  Config: {sweep_path}")
    print(f"  Combinations: {sweep.total_combinations}")
    print(f"  Runs per set: {settings.runs_per_set}")
    print(f"  Total simulations: {sweep.total_runs}")
    print(f"  Max generations: {settings.max_generations}")
    print()

    def progress_cb(done: int, total: int) -> None:
        pct = done / total * 100 if total > 0 else 100
        print(f"\r  Progress: {done}/{total} ({pct:.0f}%)", end="", flush=True)

    result = sweep.run(parallel=True, progress_callback=progress_cb)
    print()

    out_dir = Path(output_dir or base_config.viz.output_dir) / f"sweep_{int(time.time())}"
    sweep.export_results(result, out_dir)

    print()
    print("[Sweep Results]")
    print(f"  Combinations tested: {result.total_combinations}")
    print(f"  Total runs: {result.total_runs}")
    print(f"  Elapsed: {result.elapsed_seconds:.1f}s")

    best = result.best_stable_combination()
    if best:
        print(f"  Best stable combination: {best.params}")
        print(f"    Stability rate: {best.stability_rate:.0%}")
        print(f"    Survival rate: {best.survival_rate:.0%}")
        print(f"    Avg final live: {best.avg_final_live:.0f}")
    else:
        print("  No stable combination found.")
    print(f"  Results exported to: {out_dir}")


def main() -> None:
    args = parse_args()

    if args.ui:
        launch_ui()
        return

    if args.mode is None:
        print("Error: Specify --mode (single|sweep) or --ui to launch the web interface.")
        print("Run with --help for usage information.")
        sys.exit(1)

    if args.mode == "single":
        run_single(
            args.config,
            seed_override=args.seed,
            max_generations=args.generations,
            ruleset=args.ruleset,
            output_dir=args.output,
        )
    elif args.mode == "sweep":
        run_sweep(
            args.config,
            seed_override=args.seed,
            ruleset=args.ruleset,
            output_dir=args.output,
        )


if __name__ == "__main__":
    main()
