"""Roll piece calculation.

A roll cut with ``L`` layers yields ``L * sum(ratios)`` pieces for each
article laid on it.  Pieces are never cached: callers recompute whenever a
layer count or an article's ratios change.
"""

import logging
from dataclasses import replace

from .errors import report

logger = logging.getLogger(__name__)


def calculate_roll_pieces(roll, articles, size_config, diagnostics=None) -> int:
    """Total pieces cut from ``roll`` across all ``articles``.

    An article without a size configuration (or with no ratios) counts as a
    single piece per layer and a ``MISSING_SIZE_CONFIG`` warning is reported.
    """
    layers = roll.layer_count or 0
    if not layers or not articles:
        return 0

    total = 0
    for article in articles:
        config = size_config.get(article.article_number)
        ratios = config.ratio_values() if config is not None else []
        if not ratios:
            report(
                diagnostics, logger, "MISSING_SIZE_CONFIG",
                "No size ratios configured; counting one piece per layer",
                article_number=article.article_number, roll_number=roll.roll_number,
            )
            total += layers
            continue
        total += sum(ratios) * layers
    return total


def calculate_lot_pieces(lot, diagnostics=None) -> int:
    return sum(
        calculate_roll_pieces(roll, lot.articles, lot.size_config, diagnostics)
        for roll in lot.rolls
    )


def with_calculated_pieces(lot, diagnostics=None):
    """Return ``lot`` with every roll's ``pieces`` recomputed."""
    rolls = tuple(
        replace(roll, pieces=calculate_roll_pieces(roll, lot.articles, lot.size_config, diagnostics))
        for roll in lot.rolls
    )
    return replace(lot, rolls=rolls)
