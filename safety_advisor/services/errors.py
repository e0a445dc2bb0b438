"""
Error types for Safety Advisor.

Loader and classification failures propagate to the API boundary, where the
error handler turns them into user-facing messages. Lookup inconsistencies
never raise; they degrade to empty or partial results.
"""


class SafetyAdvisorError(Exception):
    """Base class for all errors raised by Safety Advisor."""
    error_type = "internal_error"


class LoadError(SafetyAdvisorError):
    """A dataset or catalog resource could not be fetched, parsed or validated."""
    error_type = "load_error"

    def __init__(self, message: str, resource: str = ""):
        super().__init__(message)
        self.resource = resource


class ClassificationError(SafetyAdvisorError):
    """The LLM classification call failed (transport, parsing or empty response)."""
    error_type = "classification_error"


class NoClassificationResult(SafetyAdvisorError):
    """The LLM answered, but nothing in the answer belongs to the vocabulary."""
    error_type = "no_classification_result"
