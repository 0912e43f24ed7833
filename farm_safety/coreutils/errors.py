"""
Error taxonomy for a scoring pass.

Only failures that end a pass (or a single write) are exceptions. Missing
metrics and degenerate populations are recovered locally and reported as
diagnostics on the pass report.
"""


class FarmSafetyError(Exception):
    """Base class for scoring errors"""


class PopulationFetchError(FarmSafetyError):
    """The farm population could not be read; the whole pass fails."""


class PersistError(FarmSafetyError):
    """A single farm's scores could not be written."""

    def __init__(self, message: str, identity=None):
        super().__init__(message)
        self.identity = identity
