"""
Exceptions raised by the analysis core.
"""


class AnalysisError(Exception):
    """Base exception for the analysis core."""

    pass


class InputTooShortError(AnalysisError):
    """Document text is below the minimum analyzable length."""

    def __init__(self, length: int, minimum: int):
        self.length = length
        self.minimum = minimum
        super().__init__(
            f"Document text is too short for analysis (minimum {minimum} characters, got {length})"
        )


class CapabilityUnavailableError(AnalysisError):
    """No usable generative capability.

    ``hint`` is one of ``authorization``, ``download`` or ``unsupported`` and tells
    the caller which remediation applies.
    """

    def __init__(self, message: str, hint: str = "unsupported"):
        self.hint = hint
        super().__init__(message)


class MalformedOutputError(AnalysisError):
    """Capability output could not be read as a JSON object."""

    pass


class SessionCreationError(AnalysisError):
    """A capability session could not be created."""

    def __init__(self, capability: str, language=None, reason: str = ""):
        self.capability = capability
        self.language = language
        self.reason = reason
        msg = f"Failed to create {capability} session"
        if language:
            msg += f" (language={language})"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)
