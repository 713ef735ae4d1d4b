# pointscalc/errors.py


class PointsCalcError(Exception):
    """Base class for catalog errors."""


class ValidationError(PointsCalcError):
    """A category or item field is empty, non-numeric or not positive."""


class PersistenceError(PointsCalcError):
    """The storage backend rejected a read or write."""


class UnknownCategoryError(PointsCalcError, KeyError):
    """No category with the given name."""
