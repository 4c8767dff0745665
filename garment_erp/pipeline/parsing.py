"""Smart parser for the size and ratio strings typed by supervisors.

Supervisors type sizes as ``S:M:L``, ``S, M, L``, ``S|M|L`` or just
``S M L``; the same rules apply to ratio lists such as ``1:2:2:1``.
"""

import re

SEPARATORS = ":;,|"

_ALT_SEPARATORS = re.compile(r"[;,|]")
_WHITESPACE = re.compile(r"\s+")
_REPEATED_COLONS = re.compile(r"::+")
_LEADING_INT = re.compile(r"^\s*\+?(\d+)")


def parse_tokens(text) -> list[str]:
    """Split ``text`` into trimmed, non-empty tokens.

    Without any of ``:;,|`` the input is split on whitespace, so both ``"M"``
    and ``"S M L"`` work.  Otherwise every separator is turned into ``:`` and
    the string is split on that; spaces inside a token are kept.
    """
    if not text:
        return []
    text = str(text)

    if not any(sep in text for sep in SEPARATORS):
        return [tok for tok in text.split() if tok]

    normalized = _ALT_SEPARATORS.sub(":", text)
    normalized = _WHITESPACE.sub(" ", normalized)
    normalized = _REPEATED_COLONS.sub(":", normalized).strip()
    tokens = (tok.strip() for tok in normalized.split(":"))
    return [tok for tok in tokens if tok]


def join_tokens(tokens) -> str:
    return ":".join(tokens)


def reconcile_ratios(sizes, ratios) -> list[str]:
    """Pad ``ratios`` with ``"1"`` or cut it from the end to match ``sizes``."""
    ratios = list(ratios)[: len(sizes)]
    ratios.extend(["1"] * (len(sizes) - len(ratios)))
    return ratios


def reconcile_size_config(sizes_text, ratios_text) -> tuple[str, str]:
    """Return the ``(sizes, ratios)`` strings as they are stored for an article."""
    sizes = parse_tokens(sizes_text)
    ratios = reconcile_ratios(sizes, parse_tokens(ratios_text))
    return join_tokens(sizes), join_tokens(ratios)


def to_ratio(token) -> int:
    """Coerce a ratio token to an int.

    Leading digits win (``"2pcs"`` -> 2); anything else, including negative
    numbers, becomes 0.
    """
    if isinstance(token, bool):
        return 0
    if isinstance(token, int):
        return max(token, 0)
    if isinstance(token, float):
        return max(int(token), 0)
    match = _LEADING_INT.match(str(token or ""))
    return int(match.group(1)) if match else 0


def parse_ratio_values(value) -> list[int]:
    """Parse a ratio string (or an already tokenised sequence) into ints."""
    tokens = parse_tokens(value) if isinstance(value, str) or value is None else list(value)
    return [to_ratio(tok) for tok in tokens]
