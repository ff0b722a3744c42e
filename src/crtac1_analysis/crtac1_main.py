"""
CRTAC1 Main Script
Runs the CRTAC1 cohort harmonization and analysis pipeline
"""

import argparse
import logging
import os
import sys
from dataclasses import dataclass

import pandas as pd

from ..data_processing import (
    CRTAC1Error,
    InputPaths,
    harmonize_copd,
    harmonize_hospital,
    harmonize_long_covid,
    load_raw_sources,
    unify_samples,
)
from ..utils.shared_functions import format_pvalue, save_results
from .linear_model import (
    FittedModel,
    anova_table,
    estimated_marginal_means,
    evaluate_contrasts,
    fit_linear_model,
)
from .normality import residual_normality, shapiro_by_condition
from .summary import NormalRange, compute_normal_range, summarize_by_condition

logger = logging.getLogger('crtac1_main')

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass
class AnalysisResults:
    samples: pd.DataFrame
    summary: pd.DataFrame
    normal_range: NormalRange
    model: FittedModel
    coefficients: pd.DataFrame
    anova: pd.DataFrame
    emmeans: pd.DataFrame
    contrasts: pd.DataFrame
    normality: pd.DataFrame
    residual_normality: pd.DataFrame


def harmonize_sources(raw, strict_joins=False):
    """Harmonize the raw tables of each cohort, keyed by cohort name."""
    return {
        'hospital': harmonize_hospital(raw['hospital']),
        'long_covid': harmonize_long_covid(
            raw['long_covid'],
            raw['long_covid_meta_copd'],
            raw['long_covid_meta'],
            strict_joins=strict_joins
        ),
        'copd': harmonize_copd(raw['copd'], raw['copd_ages'], strict_joins=strict_joins),
    }


def run_analysis(samples, contrasts=None):
    """Run every analysis step on the unified sample table."""
    summary = summarize_by_condition(samples)
    normal_range = compute_normal_range(samples)
    model = fit_linear_model(samples)
    return AnalysisResults(
        samples=samples,
        summary=summary,
        normal_range=normal_range,
        model=model,
        coefficients=model.coefficient_table(),
        anova=anova_table(model),
        emmeans=estimated_marginal_means(model),
        contrasts=evaluate_contrasts(model, contrasts),
        normality=shapiro_by_condition(samples),
        residual_normality=residual_normality(model),
    )


def write_reports(results, output_dir):
    """Write every result table to <output_dir>/reports."""
    reports_dir = os.path.join(output_dir, 'reports')
    tables = {
        'unified_samples.csv': results.samples,
        'condition_summary.csv': results.summary,
        'normal_range.csv': results.normal_range.to_frame(),
        'model_coefficients.csv': results.coefficients,
        'model_anova.csv': results.anova,
        'estimated_marginal_means.csv': results.emmeans,
        'contrasts.csv': results.contrasts,
        'normality_by_condition.csv': results.normality,
        'residual_normality.csv': results.residual_normality,
    }
    return [save_results(df, reports_dir, filename) for filename, df in tables.items()]


def make_plots(results, output_dir):
    """Render the CRTAC1 plots to <output_dir>/plots."""
    from .plots import plot_crtac1_by_condition, plot_crtac1_vs_age, plot_qq_by_condition

    plots_dir = os.path.join(output_dir, 'plots')
    return [
        plot_crtac1_by_condition(results.samples, results.normal_range, plots_dir),
        plot_crtac1_vs_age(results.samples, plots_dir),
        plot_qq_by_condition(results.samples, plots_dir),
    ]


def print_report(results):
    """Print the main result tables."""
    print("\nCRTAC1 by condition:")
    print(results.summary.to_string(index=False))
    nr = results.normal_range
    print(f"\nNormal range (healthy, n={nr.n}): {nr.low:.3f} - {nr.high:.3f} (mean {nr.mean:.3f})")
    print(f"\nLinear model: R^2 = {results.model.rsquared:.3f}")
    coefficients = results.coefficients.drop(columns=['r_squared'])
    print(coefficients.to_string(index=False, formatters={'p_value': format_pvalue}))
    print("\nEstimated marginal means (age = {:.1f}):".format(results.model.mean_age))
    print(results.emmeans.to_string(index=False))
    print("\nContrasts (Sidak adjusted):")
    print(results.contrasts.to_string(
        index=False,
        formatters={'p_value': format_pvalue, 'p_value_sidak': format_pvalue}
    ))
    print("\nShapiro-Wilk by condition:")
    print(results.normality.to_string(index=False, formatters={'p_value': format_pvalue}))


def run_pipeline(paths, output_dir=None, strict_joins=False, plots=True):
    """Load, harmonize, unify and analyze; write reports and plots when output_dir is given."""
    raw = load_raw_sources(paths)
    harmonized = harmonize_sources(raw, strict_joins=strict_joins)
    samples = unify_samples(harmonized['hospital'], harmonized['long_covid'], harmonized['copd'])
    results = run_analysis(samples)
    if output_dir is not None:
        write_reports(results, output_dir)
        if plots:
            make_plots(results, output_dir)
    return results


def configure_logging(level='INFO', output_dir=None):
    """Log to stderr and, when output_dir is given, to processing_log.txt inside it."""
    handlers = [logging.StreamHandler()]
    if output_dir is not None:
        os.makedirs(output_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(output_dir, 'processing_log.txt')))
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, handlers=handlers, force=True)


def parse_args(argv=None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description='Run CRTAC1 cohort analysis pipeline')

    # Input locations
    parser.add_argument('--base-path', type=str, default='data',
                        help='Directory containing the input CSV files')
    parser.add_argument('--hospital-file', type=str, default=None,
                        help='Hospital cohort CRTAC1 file')
    parser.add_argument('--long-covid-file', type=str, default=None,
                        help='Long COVID cohort CRTAC1 file')
    parser.add_argument('--long-covid-meta-copd-file', type=str, default=None,
                        help='Long COVID metadata with COPD flag')
    parser.add_argument('--long-covid-meta-file', type=str, default=None,
                        help='Long COVID metadata without COPD flag')
    parser.add_argument('--copd-file', type=str, default=None,
                        help='COPD cohort CRTAC1 file')
    parser.add_argument('--copd-ages-file', type=str, default=None,
                        help='COPD cohort ages file')

    # Output and behaviour
    parser.add_argument('--output-dir', type=str, default='output/crtac1_analysis',
                        help='Directory for reports and plots')
    parser.add_argument('--strict-joins', action='store_true',
                        help='Fail instead of dropping measurements without metadata')
    parser.add_argument('--no-plots', action='store_true',
                        help='Skip rendering plots')
    parser.add_argument('--log-level', type=str, default='INFO',
                        help='Logging level (default: INFO)')

    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    configure_logging(args.log_level, args.output_dir)
    paths = InputPaths.from_base_path(
        args.base_path,
        hospital=args.hospital_file,
        long_covid=args.long_covid_file,
        long_covid_meta_copd=args.long_covid_meta_copd_file,
        long_covid_meta=args.long_covid_meta_file,
        copd=args.copd_file,
        copd_ages=args.copd_ages_file,
    )
    try:
        results = run_pipeline(
            paths,
            output_dir=args.output_dir,
            strict_joins=args.strict_joins,
            plots=not args.no_plots
        )
    except CRTAC1Error:
        logger.exception("CRTAC1 analysis failed")
        return 1
    print_report(results)
    logger.info(f"Results written to {args.output_dir}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
