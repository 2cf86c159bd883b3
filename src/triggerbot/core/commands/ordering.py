"""Specificity ordering of (trigger, command) candidates."""

from functools import cmp_to_key

from triggerbot.core.commands.argument import EndlessArgument
from triggerbot.core.commands.base import Command

Candidate = tuple[str, Command]


def _arity(command: Command) -> tuple[int, bool, bool]:
    """(effective argument count, unbounded endless tail, endless tail)."""
    count = len(command.arguments)
    last = command.arguments[-1]
    if not last.endless:
        return count, False, False

    # A plain endless argument is one value, only EndlessArgument holds many
    if isinstance(last, EndlessArgument):
        if last.max_arguments is not None:
            return count + last.max_arguments - 1, False, True
        return count, True, True
    return count, False, True


def compare_candidates(a: Candidate, b: Candidate) -> int:
    """
    Negative when a should be tried before b.

    Longer triggers go first. Between two commands with arguments, bounded
    tails beat unbounded endless tails, then more effective arguments win,
    then exact arity beats an endless tail. A command without arguments is
    tried before one with arguments.
    """
    trigger_a, command_a = a
    trigger_b, command_b = b

    if len(trigger_a) != len(trigger_b):
        return -1 if len(trigger_a) > len(trigger_b) else 1

    has_a, has_b = bool(command_a.arguments), bool(command_b.arguments)
    if has_a and has_b:
        count_a, unbounded_a, endless_a = _arity(command_a)
        count_b, unbounded_b, endless_b = _arity(command_b)

        if unbounded_a != unbounded_b:
            return 1 if unbounded_a else -1
        if count_a != count_b:
            return -1 if count_a > count_b else 1
        if endless_a != endless_b:
            return 1 if endless_a else -1
    elif not has_a and has_b:
        return -1
    elif has_a and not has_b:
        return 1

    return 0


def sort_candidates(candidates: list[Candidate]) -> list[Candidate]:
    """Most specific candidates first; ties keep their registration order."""
    return sorted(candidates, key=cmp_to_key(compare_candidates))
