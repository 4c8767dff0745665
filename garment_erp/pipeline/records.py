"""Immutable records flowing through the lot -> bundle -> work item pipeline.

Records are frozen dataclasses; every transformation returns new records
(``dataclasses.replace``) instead of mutating the input.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional

from .errors import InvalidInputError
from .parsing import join_tokens, parse_ratio_values, parse_tokens, reconcile_ratios

READY_FOR_CUTTING = "ready_for_cutting"
CUT_READY = "cut_ready"
DEFAULT_PRIORITY = "normal"


def _text(value) -> str:
    return "" if value is None else str(value).strip()


def _number(value, cast=float, default=0):
    """Coerce optional numeric input; blanks and junk fall back to ``default``."""
    if value is None or value == "":
        return default
    try:
        return cast(float(value)) if cast is int else cast(value)
    except (TypeError, ValueError, OverflowError):
        return default


@dataclass(frozen=True)
class Article:
    article_number: str
    style_name: str = ""

    def __post_init__(self):
        if not _text(self.article_number):
            raise InvalidInputError("MISSING_ARTICLE_NUMBER", style_name=self.style_name)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Article":
        return cls(
            article_number=_text(data.get("article_number")),
            style_name=_text(data.get("style_name")),
        )


@dataclass(frozen=True)
class SizeConfig:
    """Sizes and ratios for one article; always the same length."""

    sizes: tuple = ()
    ratios: tuple = ()

    def __post_init__(self):
        if len(self.sizes) != len(self.ratios):
            object.__setattr__(self, "ratios", tuple(reconcile_ratios(self.sizes, self.ratios)))

    @classmethod
    def from_strings(cls, sizes_text, ratios_text) -> "SizeConfig":
        sizes = parse_tokens(sizes_text)
        return cls(tuple(sizes), tuple(reconcile_ratios(sizes, parse_tokens(ratios_text))))

    def as_strings(self) -> dict:
        return {"sizes": join_tokens(self.sizes), "ratios": join_tokens(self.ratios)}

    def ratio_values(self) -> list[int]:
        return parse_ratio_values(self.ratios)

    def pairs(self):
        return zip(self.sizes, self.ratio_values())


@dataclass(frozen=True)
class Roll:
    id: str
    roll_number: int
    color_name: str = ""
    layer_count: int = 0
    marked_weight: float = 0.0
    actual_weight: float = 0.0
    pieces: int = 0

    def __post_init__(self):
        if self.layer_count is not None and self.layer_count < 0:
            raise InvalidInputError("NEGATIVE_LAYER_COUNT", roll_number=self.roll_number,
                                    layer_count=self.layer_count)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], position: int = 1) -> "Roll":
        roll_number = _number(data.get("roll_number"), int, position) or position
        return cls(
            id=_text(data.get("id")) or f"R{roll_number}",
            roll_number=roll_number,
            color_name=_text(data.get("color_name") or data.get("color")),
            layer_count=_number(data.get("layer_count", data.get("layers")), int),
            marked_weight=_number(data.get("marked_weight")),
            actual_weight=_number(data.get("actual_weight")),
        )


@dataclass(frozen=True)
class Lot:
    lot_number: str
    fabric_name: str = ""
    fabric_width: str = ""
    nepali_date: str = ""
    articles: tuple = ()
    size_config: dict = field(default_factory=dict)
    rolls: tuple = ()

    def __post_init__(self):
        if not _text(self.lot_number):
            raise InvalidInputError("MISSING_LOT_NUMBER")
        seen = set()
        for article in self.articles:
            if article.article_number in seen:
                raise InvalidInputError("DUPLICATE_ARTICLE", lot_number=self.lot_number,
                                        article_number=article.article_number)
            seen.add(article.article_number)

    @property
    def roll_count(self) -> int:
        return len(self.rolls)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Lot":
        """Build a lot from the JSON shape posted by the WIP entry form.

        Size configuration may be given per article (``sizes``/``ratios`` on
        each article) or as a ``size_config`` mapping keyed by article number.
        Lot level ``sizes``/``ratios`` apply to articles that have neither.
        """
        articles = []
        size_config = {}
        raw_config = data.get("size_config") or {}
        for raw in data.get("articles") or []:
            article = Article.from_dict(raw)
            articles.append(article)
            entry = raw_config.get(article.article_number) or {}
            sizes = raw.get("sizes") or entry.get("sizes") or data.get("sizes")
            ratios = raw.get("ratios") or entry.get("ratios") or data.get("ratios")
            if sizes:
                size_config[article.article_number] = SizeConfig.from_strings(sizes, ratios)

        rolls = tuple(
            Roll.from_dict(raw, position=i)
            for i, raw in enumerate(data.get("rolls") or [], start=1)
        )
        return cls(
            lot_number=_text(data.get("lot_number")),
            fabric_name=_text(data.get("fabric_name")),
            fabric_width=_text(data.get("fabric_width")),
            nepali_date=_text(data.get("nepali_date")),
            articles=tuple(articles),
            size_config=size_config,
            rolls=rolls,
        )


@dataclass(frozen=True)
class Bundle:
    bundle_id: str
    key: str
    roll_id: str
    roll_number: int
    article_number: str
    article_name: str
    color: str
    size: str
    layers: int
    ratio: int
    pieces: int
    lot_number: str
    fabric_name: str = ""
    nepali_date: str = ""
    status: str = READY_FOR_CUTTING
    priority: str = DEFAULT_PRIORITY
    created_at: Optional[datetime] = None

    def as_dict(self) -> dict:
        data = dict(self.__dict__)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data


@dataclass(frozen=True)
class Operation:
    id: Any
    sequence: int
    name_en: str = ""
    name_np: str = ""
    machine_type: str = ""
    estimated_time_per_piece: float = 0.0
    rate: float = 0.0
    skill_level: str = "medium"
    # None means "depends on the previous sequence"
    dependencies: Optional[tuple] = None

    def as_dict(self) -> dict:
        data = dict(self.__dict__)
        data["dependencies"] = None if self.dependencies is None else list(self.dependencies)
        return data


@dataclass(frozen=True)
class Template:
    id: str
    name: str = ""
    article_type: str = "universal"
    article_numbers: Optional[tuple] = None
    custom: bool = False
    operations: tuple = ()

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "article_type": self.article_type,
            "article_numbers": None if self.article_numbers is None else list(self.article_numbers),
            "custom": self.custom,
            "operations": [op.as_dict() for op in self.operations],
        }


@dataclass(frozen=True)
class WorkItem:
    id: str
    bundle_id: str
    operation_id: Any
    operation_name: str
    sequence: int
    pieces: int
    estimated_time: float
    total_earnings: float
    machine_type: str
    skill_level: str
    status: str
    dependencies: tuple = ()
    assigned_operator: Optional[Any] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    priority: str = DEFAULT_PRIORITY
    lot_number: str = ""
    article_number: str = ""
    article_name: str = ""
    color: str = ""
    size: str = ""
    operation_name_np: str = ""

    def as_dict(self) -> dict:
        data = dict(self.__dict__)
        data["dependencies"] = list(self.dependencies)
        for key in ("created_at", "completed_at"):
            data[key] = data[key].isoformat() if data[key] else None
        return data
