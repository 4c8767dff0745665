"""Expand a WIP lot into cut bundles, one per (roll, article, size)."""

import logging
from dataclasses import replace
from datetime import datetime, timezone

from .errors import report
from .records import CUT_READY, Bundle

logger = logging.getLogger(__name__)


def utcnow():
    return datetime.now(timezone.utc)


def sequential_bundle_ids(lot_number: str, width: int = 3):
    """Default id factory: ``<lot>-B001``, ``<lot>-B002``..."""

    def make(index: int) -> str:
        return f"{lot_number}-B{str(index + 1).zfill(width)}"

    return make


def _cut_bundles(lot):
    for roll in lot.rolls:
        layers = roll.layer_count or 0
        for article in lot.articles:
            config = lot.size_config.get(article.article_number)
            if config is None:
                continue
            for size, ratio in config.pairs():
                pieces = ratio * layers
                if pieces <= 0:
                    continue
                yield Bundle(
                    bundle_id="",
                    key=f"{roll.id}-{article.article_number}-{size}",
                    roll_id=roll.id,
                    roll_number=roll.roll_number,
                    article_number=article.article_number,
                    article_name=article.style_name,
                    color=roll.color_name,
                    size=size,
                    layers=layers,
                    ratio=ratio,
                    pieces=pieces,
                    lot_number=lot.lot_number,
                    fabric_name=lot.fabric_name,
                    nepali_date=lot.nepali_date,
                )


def expand_lot_to_bundles(lot, id_factory=None, clock=None, diagnostics=None) -> list[Bundle]:
    """Cut ``lot`` into bundles.

    Order is rolls, then articles, then sizes, all as entered.  Zero piece
    combinations are skipped; articles without a size configuration are
    skipped with a ``MISSING_SIZE_CONFIG`` warning.  Once every bundle
    exists they are numbered through ``id_factory(index)`` and marked
    ``cut_ready``.  An empty result is returned as-is with a ``NO_BUNDLES``
    warning.
    """
    id_factory = id_factory or sequential_bundle_ids(lot.lot_number)
    clock = clock or utcnow

    for article in lot.articles:
        if article.article_number not in lot.size_config:
            report(
                diagnostics, logger, "MISSING_SIZE_CONFIG",
                "No size ratios configured; article is not cut into bundles",
                article_number=article.article_number, lot_number=lot.lot_number,
            )

    cut = list(_cut_bundles(lot))
    if not cut:
        report(
            diagnostics, logger, "NO_BUNDLES",
            "No bundles created - check layer counts and size ratios",
            lot_number=lot.lot_number,
            roll_count=lot.roll_count,
            article_numbers=[a.article_number for a in lot.articles],
        )
        return []

    created_at = clock()
    bundles = [
        replace(b, bundle_id=id_factory(i), status=CUT_READY, created_at=created_at)
        for i, b in enumerate(cut)
    ]
    logger.info("Created %s bundles for lot %s", len(bundles), lot.lot_number)
    return bundles
