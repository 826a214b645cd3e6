"""Class label normalization."""

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_class_key(label: str | None) -> str:
    """Turn a printed class label into a comparison key.

    ``"6ABC "`` and ``"6abc"`` both become ``"6abc"``. Empty or missing
    input yields an empty string.
    """
    if not label:
        return ""
    return _WHITESPACE.sub("", label.lower())
