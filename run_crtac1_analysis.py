#!/usr/bin/env python
"""
Run CRTAC1 Analysis
This script runs the CRTAC1 cohort analysis pipeline; all arguments are
passed through to src.crtac1_analysis.crtac1_main
"""

import sys

from src.crtac1_analysis.crtac1_main import main

if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
