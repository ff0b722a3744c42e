"""
Source code for the CRTAC1 biomarker analysis.

This package contains modules for loading, harmonizing and analyzing
CRTAC1 ELISA measurements from hospital COVID, long-COVID and COPD cohorts.
"""
