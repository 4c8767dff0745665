"""Glue between the pure pipeline and the database.

Each function loads rows, converts them to pipeline records, runs the
pipeline and writes the resulting records back.  Warnings produced on the
way are returned to the caller in ``diagnostics`` so the API can show them.
"""

import logging
from dataclasses import dataclass, field

from . import db
from .defaults import UNIVERSAL_TEMPLATE
from .models import Bundle, Lot, Operator, ProcessTemplate, Roll, WorkItem
from .pipeline import workflow
from .pipeline.bundles import expand_lot_to_bundles, sequential_bundle_ids
from .pipeline.calculator import with_calculated_pieces
from .pipeline.earnings import summarize_earnings
from .pipeline.errors import NotFoundError, WorkflowError, report
from .pipeline.records import Lot as LotRecord
from .pipeline.skills import normalize_skill_level
from .pipeline.templates import template_from_dict
from .pipeline.work_items import expand_bundles_to_work_items

logger = logging.getLogger(__name__)


@dataclass
class Result:
    records: list = field(default_factory=list)
    diagnostics: list = field(default_factory=list)


def _get(model, missing_code, **filters):
    row = model.query.filter_by(**filters).first()
    if row is None:
        raise NotFoundError(missing_code, **filters)
    return row


# -------------------------------------------------------------------
# Lots
# -------------------------------------------------------------------
def save_lot(payload) -> Result:
    """Create or fully replace a WIP lot.  Roll pieces are always recomputed."""
    diagnostics = []
    record = with_calculated_pieces(LotRecord.from_dict(payload), diagnostics)

    lot = Lot.query.filter_by(lot_number=record.lot_number).first()
    if lot is not None and lot.bundled:
        raise WorkflowError("LOT_ALREADY_BUNDLED", lot_number=record.lot_number)
    if lot is None:
        lot = Lot(lot_number=record.lot_number)
        db.session.add(lot)

    lot.fabric_name = record.fabric_name
    lot.fabric_width = record.fabric_width
    lot.nepali_date = record.nepali_date
    lot.articles = [
        {"article_number": a.article_number, "style_name": a.style_name}
        for a in record.articles
    ]
    lot.size_config = {number: cfg.as_strings() for number, cfg in record.size_config.items()}
    lot.rolls = [
        Roll(
            roll_key=r.id,
            roll_number=r.roll_number,
            color_name=r.color_name,
            layer_count=r.layer_count,
            marked_weight=r.marked_weight,
            actual_weight=r.actual_weight,
            pieces=r.pieces,
        )
        for r in record.rolls
    ]
    lot.total_pieces = sum(r.pieces for r in record.rolls)
    db.session.commit()

    logger.info("Saved lot %s with %s rolls", lot.lot_number, len(record.rolls))
    return Result(records=[lot], diagnostics=diagnostics)


def get_lot(lot_number) -> Lot:
    return _get(Lot, "LOT_NOT_FOUND", lot_number=lot_number)


def create_bundles(lot_number, width=3) -> Result:
    """Cut a saved lot into bundles.  A lot can only be converted once."""
    lot = get_lot(lot_number)
    if lot.bundled:
        raise WorkflowError("LOT_ALREADY_BUNDLED", lot_number=lot_number)

    diagnostics = []
    bundles = expand_lot_to_bundles(
        lot.to_record(),
        id_factory=sequential_bundle_ids(lot_number, width),
        diagnostics=diagnostics,
    )
    if bundles:
        db.session.add_all(Bundle.from_record(b) for b in bundles)
        lot.bundled = True
        db.session.commit()
    return Result(records=bundles, diagnostics=diagnostics)


def list_bundles(lot_number=None) -> list[Bundle]:
    q = Bundle.query
    if lot_number:
        q = q.filter_by(lot_number=lot_number)
    return q.order_by(Bundle.bundle_id).all()


def get_bundle(bundle_id) -> Bundle:
    return _get(Bundle, "BUNDLE_NOT_FOUND", bundle_id=bundle_id)


# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------
def save_template(payload) -> ProcessTemplate:
    template = template_from_dict(payload)
    row = ProcessTemplate.query.filter_by(template_id=template.id).first()
    if row is None:
        row = ProcessTemplate(template_id=template.id)
        db.session.add(row)
    data = template.as_dict()
    row.name = data["name"]
    row.article_type = data["article_type"]
    row.article_numbers = data["article_numbers"]
    row.custom = data["custom"]
    row.operations = data["operations"]
    db.session.commit()
    return row


def ensure_default_template() -> ProcessTemplate:
    row = ProcessTemplate.query.filter_by(template_id=UNIVERSAL_TEMPLATE["id"]).first()
    return row or save_template(UNIVERSAL_TEMPLATE)


def get_template(template_id) -> ProcessTemplate:
    return _get(ProcessTemplate, "TEMPLATE_NOT_FOUND", template_id=template_id)


# -------------------------------------------------------------------
# Work items
# -------------------------------------------------------------------
def create_work_items(template_id, bundle_ids=None, lot_number=None) -> Result:
    """Expand the selected bundles with a template and store the work items.

    Work items that already exist (same bundle and operation) are left alone
    and reported as ``WORK_ITEM_EXISTS``.
    """
    template = get_template(template_id).to_record()

    q = Bundle.query
    if bundle_ids:
        q = q.filter(Bundle.bundle_id.in_(bundle_ids))
    if lot_number:
        q = q.filter_by(lot_number=lot_number)
    bundles = [b.to_record() for b in q.order_by(Bundle.bundle_id).all()]

    diagnostics = []
    items = expand_bundles_to_work_items(bundles, template, diagnostics=diagnostics)

    existing = {
        row.item_id
        for row in WorkItem.query.filter(WorkItem.item_id.in_([i.id for i in items])).all()
    } if items else set()
    created = []
    for item in items:
        if item.id in existing:
            report(diagnostics, logger, "WORK_ITEM_EXISTS", "Work item already created",
                   work_item=item.id)
            continue
        db.session.add(WorkItem.from_record(item, template_id=template.id))
        created.append(item)
    db.session.commit()
    return Result(records=created, diagnostics=diagnostics)


def list_work_items(status=None, operator_id=None, bundle_id=None) -> list[WorkItem]:
    q = WorkItem.query
    if status:
        q = q.filter_by(status=status)
    if operator_id:
        q = q.filter_by(operator_id=operator_id)
    if bundle_id:
        q = q.filter_by(bundle_id=bundle_id)
    return q.order_by(WorkItem.bundle_id, WorkItem.sequence).all()


def get_work_item(item_id) -> WorkItem:
    return _get(WorkItem, "WORK_ITEM_NOT_FOUND", item_id=item_id)


def assign_work(item_id, operator_id) -> WorkItem:
    row = get_work_item(item_id)
    operator = _get(Operator, "OPERATOR_NOT_FOUND", id=operator_id)
    row.update_from(workflow.assign(row.to_record(), operator.id, operator.machine_type))
    db.session.commit()
    return row


def start_work(item_id) -> WorkItem:
    row = get_work_item(item_id)
    row.update_from(workflow.start(row.to_record()))
    db.session.commit()
    return row


def complete_work(item_id) -> Result:
    """Complete a work item; returns the completed item followed by released ones."""
    row = get_work_item(item_id)
    siblings = WorkItem.query.filter_by(bundle_id=row.bundle_id).all()
    before = {r.item_id: r.status for r in siblings}

    updated = workflow.complete([r.to_record() for r in siblings], item_id)
    by_id = {r.item_id: r for r in siblings}
    changed = []
    for record in updated:
        if record.status != before[record.id]:
            by_id[record.id].update_from(record)
            changed.append(record)
    db.session.commit()

    changed.sort(key=lambda r: r.id != item_id)
    return Result(records=changed)


# -------------------------------------------------------------------
# Operators
# -------------------------------------------------------------------
def add_operator(name, token_id, machine_type=None, skill_level=None) -> Operator:
    op = Operator(
        name=name,
        token_id=token_id,
        machine_type=machine_type,
        skill_level=normalize_skill_level(skill_level),
    )
    db.session.add(op)
    db.session.commit()
    return op


def operator_earnings(operator_id):
    operator = _get(Operator, "OPERATOR_NOT_FOUND", id=operator_id)
    items = [r.to_record() for r in WorkItem.query.filter_by(operator_id=operator.id).all()]
    return summarize_earnings(items, operator.id)
