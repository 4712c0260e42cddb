#!/usr/bin/env python3
"""
MaintSight CLI - AI-powered maintenance risk predictor for git repositories.
"""

import json
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import click
import pandas as pd

from maintsight import __version__
from maintsight.config import DEFAULT_BRANCH, DEFAULT_MAX_COMMITS, DEFAULT_WINDOW_DAYS
from maintsight.models import RiskCategory, RiskPrediction
from maintsight.services import (
    FeatureEngineer,
    GitCommitCollector,
    XGBoostPredictor,
    summarize_predictions,
    top_risks,
)
from maintsight.utils.logger import INFO, WARNING, Logger


@click.group()
@click.version_option(version=__version__, prog_name="maintsight")
def main():
    """MaintSight - AI-powered maintenance risk predictor for git repositories."""
    pass


def _repository_options(func):
    """Options shared by every command that reads a repository."""
    func = click.option('-v', '--verbose', is_flag=True, help='Verbose output')(func)
    func = click.option('-m', '--model', 'model_path', type=click.Path(),
                        help='Model file (defaults to $MAINTSIGHT_MODEL_PATH or the bundled model)')(func)
    func = click.option('-w', '--window-size-days', default=DEFAULT_WINDOW_DAYS, type=int,
                        help='Time window in days for analysis (0 for full history)')(func)
    func = click.option('-n', '--max-commits', default=DEFAULT_MAX_COMMITS, type=int,
                        help='Maximum commits to analyze')(func)
    func = click.option('-b', '--branch', default=DEFAULT_BRANCH, help='Git branch to analyze')(func)
    func = click.argument('path', default='.', type=click.Path(exists=True))(func)
    return func


def _run_pipeline(path, branch, max_commits, window_size_days, model_path, calibrate, logger):
    """Collect history, then score it. Exits with status 1 on an empty window."""
    predictor = XGBoostPredictor(calibrate=calibrate)
    predictor.load_model(model_path)

    logger.info(f"Analyzing git history (branch: {branch})...", '🔄')
    collector = GitCommitCollector(
        repo_path=path,
        branch=branch,
        window_size_days=window_size_days or None,
        only_existing_files=True,
    )
    file_stats = collector.fetch_commit_data(max_commits)

    if not file_stats:
        logger.error("No source files found in git history")
        sys.exit(1)

    logger.info(f"Running predictions on {len(file_stats)} files...", '🤖')
    return file_stats, predictor.predict(file_stats)


def _fail(logger: Logger, error: Exception, verbose: bool) -> None:
    logger.error(f"Error: {error}")
    if verbose:
        traceback.print_exc()
    sys.exit(1)


@main.command()
@_repository_options
@click.option('-o', '--output', type=click.Path(), help='Output file path')
@click.option('-f', '--format', 'output_format',
              type=click.Choice(['json', 'csv', 'markdown']),
              default='json',
              help='Output format')
@click.option('-t', '--threshold', type=float, default=0.0,
              help='Only show files at or above this risk score')
@click.option('--calibrate/--no-calibrate', default=True,
              help='Apply score calibration when metadata is available')
def predict(
    path: str,
    branch: str,
    max_commits: int,
    window_size_days: int,
    model_path: Optional[str],
    verbose: bool,
    output: Optional[str],
    output_format: str,
    threshold: float,
    calibrate: bool,
):
    """Run maintenance risk predictions on a git repository."""
    Logger.set_level(INFO if verbose else WARNING)
    logger = Logger('MaintSight')

    try:
        _, predictions = _run_pipeline(
            path, branch, max_commits, window_size_days, model_path, calibrate, logger
        )
    except Exception as e:
        _fail(logger, e, verbose)

    if threshold > 0:
        predictions = [p for p in predictions if p.risk_score >= threshold]

    if output_format == 'json':
        result = _format_json(predictions)
    elif output_format == 'csv':
        result = _format_csv(predictions)
    else:
        result = _format_markdown_report(predictions, Path(path).resolve().name)

    if output:
        Path(output).write_text(result, encoding='utf-8')
        logger.success(f"Results saved to: {output}", '✅')
    else:
        click.echo(result)

    if verbose:
        _show_summary(predictions, logger)


@main.command()
@_repository_options
def stats(
    path: str,
    branch: str,
    max_commits: int,
    window_size_days: int,
    model_path: Optional[str],
    verbose: bool,
):
    """Show risk distribution and feature statistics for a repository."""
    Logger.set_level(INFO if verbose else WARNING)
    logger = Logger('MaintSight')

    try:
        file_stats, predictions = _run_pipeline(
            path, branch, max_commits, window_size_days, model_path, False, logger
        )
    except Exception as e:
        _fail(logger, e, verbose)

    summary = summarize_predictions(predictions)
    total = summary['total']
    scores = summary['scores']

    click.echo(f"\n📊 Repository Statistics: {Path(path).resolve().name}")
    click.echo('─' * 50)
    click.echo(f"  Files analyzed: {total}")
    click.echo(f"  Average risk score: {scores['mean']:.3f}")
    click.echo(f"  Standard deviation: {scores['std']:.3f}")
    click.echo(f"  Min: {scores['min']:.3f}, Max: {scores['max']:.3f}")

    click.echo("\nRisk Distribution:")
    for category in reversed(list(RiskCategory)):
        count = summary['risk_distribution'][category.value]
        click.echo(f"  {category.display_name:<12}: {count:>4} files ({count / total * 100:.1f}%)")

    engineer = FeatureEngineer()
    frame = engineer.to_dataframe(engineer.transform(file_stats))
    click.echo("\nCommit Statistics:")
    click.echo(f"  Total commits: {int(frame['commits'].sum())}")
    click.echo(f"  Bug fix commits: {int(frame['bug_commits'].sum())}")
    click.echo(f"  Avg commits/file: {frame['commits'].mean():.1f}")

    click.echo("\nFeature Summary:")
    columns = ['churn', 'commits', 'authors', 'bug_ratio', 'days_active', 'code_stability']
    click.echo(frame[columns].describe().round(3).to_string())


def _format_json(predictions: List[RiskPrediction]) -> str:
    return json.dumps([p.to_dict() for p in predictions], indent=2)


def _format_csv(predictions: List[RiskPrediction]) -> str:
    columns = ['module', 'risk_score', 'risk_category']
    if any(p.is_calibrated for p in predictions):
        columns += ['raw_prediction', 'degradation_score', 'degradation_category']
    frame = pd.DataFrame([p.to_dict() for p in predictions], columns=columns)
    return frame.to_csv(index=False, float_format='%.4f').rstrip('\n')


def _format_markdown_report(predictions: List[RiskPrediction], repo_name: str) -> str:
    """Format predictions as markdown report."""
    summary = summarize_predictions(predictions)
    dist = summary['risk_distribution']
    total = summary['total']

    def pct(count):
        return (count / total * 100) if total else 0.0

    report = f"""# MaintSight - Maintenance Risk Analysis Report

**Repository:** {repo_name}
**Date:** {datetime.now().isoformat()}
**Files Analyzed:** {total}

## Risk Distribution

| Risk Level | Count | Percentage |
|------------|-------|------------|
"""
    for category in reversed(list(RiskCategory)):
        count = dist[category.value]
        report += f"| {category.display_name} | {count} | {pct(count):.1f}% |\n"

    report += """
## Top 20 High-Risk Files

| File | Risk Score | Category |
|------|------------|----------|
"""
    for pred in top_risks(predictions, 20):
        report += f"| `{pred.module}` | {pred.risk_score:.4f} | {pred.risk_category.value} |\n"

    report += """
---
*Generated by MaintSight using XGBoost*
"""
    return report


def _show_summary(predictions: List[RiskPrediction], logger: Logger) -> None:
    summary = summarize_predictions(predictions)
    logger.info(f"Files needing attention: {summary['needs_attention']} of {summary['total']}", '📋')
    for category, count in summary['risk_distribution'].items():
        logger.info(f"  {category}: {count}")


if __name__ == '__main__':
    main()
