#!/usr/bin/env python

"""Turns a single-line model response into a typed Suggestion.

The system prompt instructs the model to answer with one line:

    +<suffix>    text to append to the current input
    =<command>   command that replaces the current input
    <command>    anything else is a standalone prediction

Prediction requests are strict: only the prefixed forms are accepted.
"""

from .exceptions import EmptyResponseError, InvalidFormatError
from .models import Suggestion, SuggestionKind

_KINDS_BY_PREFIX = {
    "+": SuggestionKind.COMPLETION,
    "=": SuggestionKind.REPLACEMENT,
}


def interpret_response(text: str, strict: bool = False) -> Suggestion:
    """Classify a raw model response.

    Raises EmptyResponseError when nothing but whitespace came back and,
    with strict=True, InvalidFormatError when the response lacks a + or =
    prefix.
    """
    content = (text or "").strip()
    if not content:
        raise EmptyResponseError()

    kind = _KINDS_BY_PREFIX.get(content[0])
    if kind is not None:
        return Suggestion(kind, content[1:])

    if strict:
        raise InvalidFormatError(content)

    return Suggestion(SuggestionKind.PREDICTION, content)
