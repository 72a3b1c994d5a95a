# errors.py
# Only these abort a document; every heuristic failure is absorbed where it happens.


class StatementOcrError(Exception):
    """Base class for failures that abort a whole document."""


class HashingError(StatementOcrError):
    pass


class RasterizationError(StatementOcrError):
    pass


class EngineInitError(StatementOcrError):
    pass
