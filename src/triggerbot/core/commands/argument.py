"""Argument declarations and verification outcomes for commands."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Union

if TYPE_CHECKING:
    from triggerbot.messagebus.base import MessageEvent


@dataclass(frozen=True)
class Valid:
    """Token verified, keep processing the following arguments."""

    value: Any


@dataclass(frozen=True)
class ValidEndNow:
    """Token verified, stop processing arguments after this one."""

    value: Any


@dataclass(frozen=True)
class Invalid:
    """Token rejected."""

    reason: str | None = None


VerificationOutcome = Union[Valid, ValidEndNow, Invalid]

Verifier = Callable[["MessageEvent | None", str], VerificationOutcome]


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


MISSING: Any = _Missing()


@dataclass
class Argument:
    """
    A typed slot in a command's argument list.

    Attributes:
        name: Name shown in usage and help output
        verifier: Converts a raw token into a VerificationOutcome
        endless: Consume the whole remaining text as this argument
        accept_empty: Pass empty tokens to the verifier instead of rejecting
        accept_quote: Allow "quoted text" to form a single token
        error: Reason reported when verification fails, overrides the verifier's
        default: Value used when the argument is omitted
        default_factory: Callable(event) producing the value when omitted
    """

    name: str
    verifier: Verifier
    endless: bool = False
    accept_empty: bool = False
    accept_quote: bool = True
    error: str | None = None
    default: Any = MISSING
    default_factory: Callable[["MessageEvent | None"], Any] | None = None

    @property
    def is_optional(self) -> bool:
        return self.default is not MISSING or self.default_factory is not None

    def get_default(self, event: "MessageEvent | None") -> Any:
        """Value used when the argument was not supplied."""
        if self.default_factory is not None:
            return self.default_factory(event)
        if self.default is MISSING:
            return None
        return self.default

    def verify(self, event: "MessageEvent | None", token: str) -> VerificationOutcome:
        outcome = self.verifier(event, token)
        if isinstance(outcome, Invalid) and self.error is not None:
            return Invalid(self.error)
        return outcome

    @property
    def info(self) -> str:
        """Short usage form, e.g. <name>, [name] or <name...>."""
        label = f"{self.name}..." if self.endless else self.name
        return f"[{label}]" if self.is_optional else f"<{label}>*"


@dataclass
class EndlessArgument(Argument):
    """
    An argument holding several values of the same type.

    The token is split on whitespace and every piece is verified with the
    item verifier; the resulting value is a list. As the
    trailing argument it captures the rest of the message, anywhere else it
    must be written inside brackets, e.g. ``[a b c]``.
    """

    endless: bool = True
    min_arguments: int = 1
    max_arguments: int | None = None

    def verify(self, event: "MessageEvent | None", token: str) -> VerificationOutcome:
        pieces = token.split()
        if len(pieces) < self.min_arguments:
            return Invalid(self.error or f"needs at least {self.min_arguments} value(s)")
        if self.max_arguments is not None and len(pieces) > self.max_arguments:
            return Invalid(self.error or f"takes at most {self.max_arguments} value(s)")

        values = []
        for piece in pieces:
            outcome = self.verifier(event, piece)
            if isinstance(outcome, Invalid):
                return Invalid(self.error or outcome.reason)
            values.append(outcome.value)
        return Valid(values)

    @property
    def info(self) -> str:
        label = f"{self.name}..."
        return f"[{label}]" if self.is_optional else f"<{label}>*"
