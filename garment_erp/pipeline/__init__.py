"""Pure lot -> bundle -> work item pipeline.

Nothing in this package touches the database or Flask; it works on the
frozen records in :mod:`.records` and returns new ones.
"""

from .bundles import expand_lot_to_bundles, sequential_bundle_ids
from .calculator import calculate_lot_pieces, calculate_roll_pieces, with_calculated_pieces
from .errors import (
    Diagnostic, InvalidInputError, NotFoundError, PipelineError, SpreadsheetError, WorkflowError,
)
from .parsing import parse_ratio_values, parse_tokens, reconcile_ratios, reconcile_size_config
from .records import Article, Bundle, Lot, Operation, Roll, SizeConfig, Template, WorkItem
from .templates import is_template_applicable, operation_dependencies, template_from_dict
from .work_items import expand_bundles_to_work_items

__all__ = [
    "Article", "Bundle", "Diagnostic", "InvalidInputError", "Lot", "NotFoundError", "Operation",
    "PipelineError", "Roll", "SizeConfig", "SpreadsheetError", "Template", "WorkItem",
    "WorkflowError", "calculate_lot_pieces", "calculate_roll_pieces",
    "expand_bundles_to_work_items", "expand_lot_to_bundles", "is_template_applicable",
    "operation_dependencies", "parse_ratio_values", "parse_tokens", "reconcile_ratios",
    "reconcile_size_config", "sequential_bundle_ids", "template_from_dict",
    "with_calculated_pieces",
]
