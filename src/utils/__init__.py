"""
Utils package initialization
"""

from .shared_functions import (
    save_results,
    save_plot,
    format_pvalue
)
