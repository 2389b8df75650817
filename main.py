"""
Posture clustering report: entry point.

Loads the motion-capture table once, runs the analysis branch of every
grouping hypothesis (subject, gesture) on its own imputation, runs the
fuzziness-exponent study and writes the report.

Usage:
    python main.py --data datasets/postures.csv --output report_assets
"""

import argparse
import copy
import datetime
import os
from typing import Any, Dict, List, Optional

from analysis.fuzzy_m_study import plot_study, run_study
from analysis.report_generator import write_report
from experiments.config import RUN_CONFIG
from experiments.pipeline import run_hypothesis
from utils.loader import load_postures


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Cluster motion-capture hand postures and write a report.")
    parser.add_argument("--data", help="Path to the delimited posture table")
    parser.add_argument("--output", help="Directory for the report assets")
    parser.add_argument("--seed", type=int, help="Random seed for sampling and initialization")
    parser.add_argument("--sample-size", type=int, help="Number of rows sampled per hypothesis")
    parser.add_argument("--no-progress", action="store_true", help="Hide progress bars")
    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Dict[str, Any]:
    """RUN_CONFIG with command line overrides applied."""
    config = copy.deepcopy(RUN_CONFIG)
    if args.data:
        config["data_path"] = args.data
    if args.output:
        config["output_directory"] = args.output
    if args.seed is not None:
        config["random_state"] = args.seed
    if args.sample_size is not None:
        config["sample_size"] = args.sample_size
    return config


def run(config: Dict[str, Any], show_progress: bool = True) -> str:
    """
    Runs the whole analysis and returns the path of the written report.
    """
    session_id = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
    print(f"Posture clustering run started: {session_id}")

    df = load_postures(
        config["data_path"],
        missing_values=config["missing_values"],
        column_aliases=config["column_aliases"],
    )
    n_missing = int(df.isna().sum().sum())
    print(f"Loaded {len(df)} rows x {df.shape[1]} columns ({n_missing} missing cells)")

    results = []
    for name in config["hypotheses"]:
        results.append(run_hypothesis(df, name, config, show_progress=show_progress))

    # The study uses the subject-imputed matrix when it exists
    study, study_figure = None, None
    if results and config["fuzzy_m_study_values"]:
        base = next((r for r in results if r["name"] == "subject"), results[0])
        n_clusters = config["hypotheses"][base["name"]]["n_clusters"]
        print(f"--- Fuzziness study on '{base['name']}' (k={n_clusters}) ---")
        study = run_study(
            base["prepared"]["X"], n_clusters,
            config["fuzzy_m_study_values"], config["random_state"],
        )
        study_figure = "fuzzy_m_impact.png"
        plot_study(
            study, f"Impact of m on fuzzy memberships (k={n_clusters})",
            os.path.join(config["output_directory"], study_figure),
        )

    report_path = write_report(
        results, config["output_directory"], config,
        fuzzy_study=study, fuzzy_study_figure=study_figure,
    )
    print(f"\nRun complete. Report saved to {report_path}")
    return report_path


def main(argv: Optional[List[str]] = None):
    args = parse_args(argv)
    run(build_config(args), show_progress=not args.no_progress)


if __name__ == "__main__":
    main()
