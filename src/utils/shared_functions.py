"""
Shared Functions Module
Common output helpers used across the analysis modules
"""

import logging
import os

import matplotlib.pyplot as plt
import pandas as pd

logger = logging.getLogger(__name__)


def save_results(df, output_dir, filename, index=False):
    """Save results to a CSV file and return its path"""
    os.makedirs(output_dir, exist_ok=True)
    output_file = os.path.join(output_dir, filename)
    df.to_csv(output_file, index=index)
    logger.info(f"Saved results to {output_file}")
    return output_file


def save_plot(fig, filename, output_dir):
    """
    Save a matplotlib figure to the specified output directory

    Parameters:
    -----------
    fig : matplotlib.figure.Figure
        Figure to save
    filename : str
        Name of the file (without extension)
    output_dir : str
        Directory to save the plot

    Returns:
    --------
    str
        Path of the written PNG
    """
    os.makedirs(output_dir, exist_ok=True)
    plot_path = os.path.join(output_dir, f"{filename}.png")
    try:
        fig.savefig(plot_path, dpi=300, bbox_inches='tight')
    finally:
        plt.close(fig)
    logger.info(f"Saved plot: {plot_path}")
    return plot_path


def format_pvalue(p):
    """Format a p-value for printed tables"""
    if pd.isna(p):
        return "NA"
    return "<0.001" if p < 0.001 else f"{p:.3f}"
