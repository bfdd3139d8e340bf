"""Display indentation for compact JSON text."""

from __future__ import annotations

_OPENERS = "{["
_CLOSERS = "}]"


def indent_json(text: str, indent_unit: str) -> str:
    """Insert newlines and indentation into compact JSON text.

    A newline follows every ``{``, ``[`` and ``,`` and precedes every
    closing bracket. The depth counter changes after a bracket is
    emitted, so a closing bracket sits at its pre-decrement depth while
    the following line uses the decremented depth. String contents are
    not inspected, so the output is meant for display only.

    Args:
        text: Compact JSON text.
        indent_unit: Text repeated once per depth level.

    Returns:
        Indented text.
    """
    output: list[str] = []
    depth = 0
    for index, character in enumerate(text):
        next_character = text[index + 1] if index + 1 < len(text) else ""
        output.append(character)
        if character in _OPENERS:
            depth += 1
        elif character in _CLOSERS:
            depth -= 1
        if character in _OPENERS or character == "," or (
            next_character and next_character in _CLOSERS
        ):
            output.append("\n")
            output.append(indent_unit * max(depth, 0))
    return "".join(output)
