"""Splitting message text into command triggers and argument tokens."""

from triggerbot.core.commands.argument import Argument, EndlessArgument

SEPARATOR = " "


def strip_trigger(text: str, trigger: str, case_sensitive: bool = False) -> str | None:
    """
    Match trigger against the start of text.

    Args:
        text: Message content with the prefix already removed
        trigger: Candidate trigger, possibly several words
        case_sensitive: Compare exactly instead of case-folded

    Returns:
        The text following the trigger (separator included), or None when the
        text does not start with the trigger as a whole word
    """
    head = text[: len(trigger)]
    if case_sensitive:
        matched = head == trigger
    else:
        matched = head.lower() == trigger.lower()

    if not matched:
        return None

    rest = text[len(trigger):]
    if rest and not rest.startswith(SEPARATOR):
        return None
    return rest


def find_closing(text: str, delimiter: str) -> int:
    """Index of the first unescaped delimiter after position 0, or -1."""
    index = 0
    while True:
        index = text.find(delimiter, index + 1)
        if index == -1 or text[index - 1] != "\\":
            return index


def _read_delimited(text: str, opening: str, closing: str) -> tuple[str, str] | None:
    if not text.startswith(opening):
        return None

    end = find_closing(text, closing)
    if end == -1:
        return None

    content = text[1:end]
    for escaped in {opening, closing}:
        content = content.replace("\\" + escaped, escaped)
    return content, text[end + 1:]


def read_token(text: str, argument: Argument) -> tuple[str, str]:
    """
    Extract the token for a non-endless argument.

    Bracket syntax applies to endless-capable arguments, quotes to arguments
    accepting them; if the closing delimiter is missing the token falls back
    to the text up to the next separator.

    Returns:
        (token, rest) where rest still starts with the separator, if any
    """
    if not text:
        return "", ""

    delimited = None
    if isinstance(argument, EndlessArgument):
        delimited = _read_delimited(text, "[", "]")
    elif argument.accept_quote:
        delimited = _read_delimited(text, '"', '"')

    if delimited is not None:
        return delimited

    end = text.find(SEPARATOR)
    if end == -1:
        return text, ""
    return text[:end], text[end:]
