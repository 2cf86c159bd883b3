"""Basic token verifiers used by the built-in commands."""

from typing import Any

from triggerbot.core.commands.argument import Invalid, Valid, VerificationOutcome, Verifier

_TRUE = {"true", "yes", "y", "on", "1"}
_FALSE = {"false", "no", "n", "off", "0"}


def string(event: Any, token: str) -> VerificationOutcome:
    return Valid(token)


def number(event: Any, token: str) -> VerificationOutcome:
    try:
        return Valid(float(token))
    except ValueError:
        return Invalid("is not a number")


def boolean(event: Any, token: str) -> VerificationOutcome:
    lowered = token.lower()
    if lowered in _TRUE:
        return Valid(True)
    if lowered in _FALSE:
        return Valid(False)
    return Invalid("is not a yes/no value")


def integer(min_value: int | None = None, max_value: int | None = None) -> Verifier:
    """Build a verifier accepting whole numbers within optional bounds."""

    def verify(event: Any, token: str) -> VerificationOutcome:
        try:
            value = int(token)
        except ValueError:
            return Invalid("is not a whole number")
        if min_value is not None and value < min_value:
            return Invalid(f"must be at least {min_value}")
        if max_value is not None and value > max_value:
            return Invalid(f"must be at most {max_value}")
        return Valid(value)

    return verify


def choice(*options: str, case_sensitive: bool = False) -> Verifier:
    """Build a verifier accepting one of a fixed set of words."""
    lookup = {(o if case_sensitive else o.lower()): o for o in options}

    def verify(event: Any, token: str) -> VerificationOutcome:
        key = token if case_sensitive else token.lower()
        if key in lookup:
            return Valid(lookup[key])
        return Invalid(f"must be one of {', '.join(options)}")

    return verify
