"""Expand cut bundles into operation level work items using a template."""

import logging

from .bundles import utcnow
from .errors import InvalidInputError, report
from .records import DEFAULT_PRIORITY, WorkItem
from .templates import is_template_applicable, operation_dependencies

logger = logging.getLogger(__name__)

READY = "ready"
WAITING = "waiting"


def _check_inputs(bundles, template):
    if not template.operations:
        raise InvalidInputError("EMPTY_TEMPLATE", template_id=template.id)
    for op in template.operations:
        if op.id is None or str(op.id).strip() == "":
            raise InvalidInputError("MISSING_OPERATION_ID", template_id=template.id,
                                    sequence=op.sequence)
    for bundle in bundles:
        if not bundle.article_number:
            raise InvalidInputError("MISSING_ARTICLE_NUMBER", bundle_id=bundle.bundle_id)
        if not bundle.lot_number:
            raise InvalidInputError("MISSING_LOT_NUMBER", bundle_id=bundle.bundle_id)


def make_work_item(bundle, operation, dependencies, created_at) -> WorkItem:
    pieces = bundle.pieces or 0
    return WorkItem(
        id=f"{bundle.bundle_id}-{operation.id}",
        bundle_id=bundle.bundle_id,
        operation_id=operation.id,
        operation_name=operation.name_en,
        operation_name_np=operation.name_np,
        sequence=operation.sequence,
        pieces=pieces,
        estimated_time=pieces * (operation.estimated_time_per_piece or 0),
        total_earnings=pieces * (operation.rate or 0),
        machine_type=operation.machine_type,
        skill_level=operation.skill_level,
        status=READY if operation.sequence == 1 else WAITING,
        dependencies=tuple(f"{bundle.bundle_id}-{dep}" for dep in dependencies),
        assigned_operator=None,
        created_at=created_at,
        priority=bundle.priority or DEFAULT_PRIORITY,
        lot_number=bundle.lot_number,
        article_number=bundle.article_number,
        article_name=bundle.article_name,
        color=bundle.color,
        size=bundle.size,
    )


def expand_bundles_to_work_items(bundles, template, clock=None, diagnostics=None) -> list[WorkItem]:
    """One work item per (applicable bundle, template operation).

    The result is sorted by bundle id then operation sequence.  When no
    bundle matches the template the empty list is returned together with a
    ``NO_WORK_ITEMS`` warning describing what was compared.
    """
    bundles = list(bundles)
    _check_inputs(bundles, template)
    clock = clock or utcnow
    created_at = clock()

    deps = {op.id: operation_dependencies(template, op) for op in template.operations}
    items = [
        make_work_item(bundle, op, deps[op.id], created_at)
        for bundle in bundles
        if is_template_applicable(template, bundle)
        for op in template.operations
    ]
    items.sort(key=lambda item: (item.bundle_id, item.sequence))

    if not items:
        report(
            diagnostics, logger, "NO_WORK_ITEMS",
            "No work items created - check template and bundle compatibility",
            bundle_count=len(bundles),
            template_id=template.id,
            template_type=template.article_type,
            template_articles=list(template.article_numbers or []),
            bundle_articles=[b.article_number for b in bundles],
            template_operations=len(template.operations),
        )
    else:
        logger.info("Created %s work items from %s bundles using template %s",
                    len(items), len(bundles), template.id)
    return items
