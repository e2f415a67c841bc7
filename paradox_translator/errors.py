"""Exceptions raised by the translation pipeline."""
from typing import Optional


class TranslatorError(Exception):
    """Base class for pipeline errors."""


class ServiceUnavailable(TranslatorError):
    """The AI service could not produce a response with any configured model."""


class TranslationExhausted(TranslatorError):
    """
    A string could not be translated into a structurally valid form within the retry ceiling.

    The unit needs a manual override-table entry. Batch callers catch this per unit
    and carry on with the remaining strings.
    """

    def __init__(self, text: str, domain, attempts: int, last_reason: Optional[str] = None):
        self.text = text
        self.domain = domain
        self.attempts = attempts
        self.last_reason = last_reason
        message = f"Giving up on {domain.value} text after {attempts} attempts: {text!r}"
        if last_reason:
            message += f" (last failure: {last_reason})"
        super().__init__(message)
