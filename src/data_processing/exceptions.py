"""Errors raised while loading, harmonizing and analyzing CRTAC1 data."""


class CRTAC1Error(Exception):
    """Base class for all pipeline errors."""


class DataLoadError(CRTAC1Error, OSError):
    """An input file is missing, undecodable or malformed."""


class SchemaError(CRTAC1Error):
    """A table is missing an expected column or carries an out-of-domain value."""


class InsufficientDataError(CRTAC1Error):
    """A group is too small to support the requested statistic."""


class DomainError(CRTAC1Error, ValueError):
    """A value falls outside the domain of a transform (e.g. log of a non-positive number)."""
