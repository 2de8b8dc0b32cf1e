"""
Custom Exceptions - Survey Scoring Platform
app/core/exceptions.py

Infrastructure exceptions. Malformed survey or answer data never raises;
it is reported as diagnostics on the scoring result instead.
"""


class ScoringEngineException(Exception):
    """Base exception for scoring infrastructure failures."""

    pass


class SemanticScorerException(ScoringEngineException):
    """The external semantic scorer could not produce a usable reply."""

    def __init__(self, message: str = "Semantic scorer call failed", status_code: int = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class DevToolsDisabledException(ScoringEngineException):
    """Inspection endpoints are switched off in this environment."""

    def __init__(self, message: str = "This endpoint is not available in production"):
        self.message = message
        super().__init__(message)
