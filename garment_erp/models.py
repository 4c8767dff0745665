from . import db
from sqlalchemy import func

from .pipeline.records import (
    Article, Bundle as BundleRecord, Lot as LotRecord, Roll as RollRecord,
    SizeConfig, WorkItem as WorkItemRecord,
)
from .pipeline.templates import template_from_dict


def fmt_ts(v):
    return v.isoformat() if v else None


class Lot(db.Model):
    """A WIP entry: one fabric cutting batch with its articles and rolls."""

    __tablename__ = "lots"
    id = db.Column(db.Integer, primary_key=True)
    lot_number = db.Column(db.String, unique=True, nullable=False, index=True)
    fabric_name = db.Column(db.String)
    fabric_width = db.Column(db.String)
    nepali_date = db.Column(db.String)
    articles = db.Column(db.JSON, default=list)  # [{article_number, style_name}]
    size_config = db.Column(db.JSON, default=dict)  # {article_number: {sizes, ratios}}
    total_pieces = db.Column(db.Integer, default=0)
    bundled = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=func.now())

    rolls = db.relationship("Roll", backref="lot", lazy=True, order_by="Roll.roll_number",
                            cascade="all, delete-orphan")

    def to_record(self) -> LotRecord:
        return LotRecord(
            lot_number=self.lot_number,
            fabric_name=self.fabric_name or "",
            fabric_width=self.fabric_width or "",
            nepali_date=self.nepali_date or "",
            articles=tuple(Article.from_dict(a) for a in self.articles or []),
            size_config={
                number: SizeConfig.from_strings(cfg.get("sizes"), cfg.get("ratios"))
                for number, cfg in (self.size_config or {}).items()
            },
            rolls=tuple(r.to_record() for r in self.rolls),
        )

    def to_dict(self):
        return {
            "lot_number": self.lot_number,
            "fabric_name": self.fabric_name,
            "fabric_width": self.fabric_width,
            "nepali_date": self.nepali_date,
            "articles": self.articles or [],
            "size_config": self.size_config or {},
            "roll_count": len(self.rolls),
            "total_pieces": self.total_pieces,
            "bundled": bool(self.bundled),
            "rolls": [r.to_dict() for r in self.rolls],
            "created_at": fmt_ts(self.created_at),
        }


class Roll(db.Model):
    __tablename__ = "rolls"
    id = db.Column(db.Integer, primary_key=True)
    lot_id = db.Column(db.Integer, db.ForeignKey("lots.id"), nullable=False)
    roll_key = db.Column(db.String, nullable=False)
    roll_number = db.Column(db.Integer)
    color_name = db.Column(db.String)
    layer_count = db.Column(db.Integer, default=0)
    marked_weight = db.Column(db.Float, default=0.0)
    actual_weight = db.Column(db.Float, default=0.0)
    pieces = db.Column(db.Integer, default=0)  # always recomputed, see services.save_lot

    def to_record(self) -> RollRecord:
        return RollRecord(
            id=self.roll_key,
            roll_number=self.roll_number,
            color_name=self.color_name or "",
            layer_count=self.layer_count or 0,
            marked_weight=self.marked_weight or 0.0,
            actual_weight=self.actual_weight or 0.0,
            pieces=self.pieces or 0,
        )

    def to_dict(self):
        return {
            "id": self.roll_key,
            "roll_number": self.roll_number,
            "color_name": self.color_name,
            "layer_count": self.layer_count,
            "marked_weight": self.marked_weight,
            "actual_weight": self.actual_weight,
            "pieces": self.pieces,
        }


class Bundle(db.Model):
    __tablename__ = "bundles"
    id = db.Column(db.Integer, primary_key=True)
    bundle_id = db.Column(db.String, unique=True, nullable=False, index=True)
    bundle_key = db.Column(db.String)  # rollId-articleNumber-size
    lot_number = db.Column(db.String, index=True, nullable=False)
    roll_key = db.Column(db.String)
    roll_number = db.Column(db.Integer)
    article_number = db.Column(db.String, nullable=False)
    article_name = db.Column(db.String)
    color = db.Column(db.String)
    size = db.Column(db.String)
    layers = db.Column(db.Integer, default=0)
    ratio = db.Column(db.Integer, default=0)
    pieces = db.Column(db.Integer, default=0)
    fabric_name = db.Column(db.String)
    nepali_date = db.Column(db.String)
    status = db.Column(db.String, default="cut_ready")
    priority = db.Column(db.String, default="normal")
    qr_path = db.Column(db.String)
    created_at = db.Column(db.DateTime, default=func.now())

    @classmethod
    def from_record(cls, record: BundleRecord) -> "Bundle":
        return cls(
            bundle_id=record.bundle_id,
            bundle_key=record.key,
            lot_number=record.lot_number,
            roll_key=record.roll_id,
            roll_number=record.roll_number,
            article_number=record.article_number,
            article_name=record.article_name,
            color=record.color,
            size=record.size,
            layers=record.layers,
            ratio=record.ratio,
            pieces=record.pieces,
            fabric_name=record.fabric_name,
            nepali_date=record.nepali_date,
            status=record.status,
            priority=record.priority,
            created_at=record.created_at,
        )

    def to_record(self) -> BundleRecord:
        return BundleRecord(
            bundle_id=self.bundle_id,
            key=self.bundle_key or "",
            roll_id=self.roll_key or "",
            roll_number=self.roll_number or 0,
            article_number=self.article_number,
            article_name=self.article_name or "",
            color=self.color or "",
            size=self.size or "",
            layers=self.layers or 0,
            ratio=self.ratio or 0,
            pieces=self.pieces or 0,
            lot_number=self.lot_number,
            fabric_name=self.fabric_name or "",
            nepali_date=self.nepali_date or "",
            status=self.status,
            priority=self.priority or "normal",
            created_at=self.created_at,
        )

    def to_dict(self):
        return self.to_record().as_dict()


class ProcessTemplate(db.Model):
    """An operation sequence; operations are kept as JSON in template order."""

    __tablename__ = "process_templates"
    id = db.Column(db.Integer, primary_key=True)
    template_id = db.Column(db.String, unique=True, nullable=False, index=True)
    name = db.Column(db.String)
    article_type = db.Column(db.String, default="universal")
    article_numbers = db.Column(db.JSON)
    custom = db.Column(db.Boolean, default=False)
    operations = db.Column(db.JSON, default=list)
    created_at = db.Column(db.DateTime, default=func.now())

    def to_record(self):
        return template_from_dict({
            "id": self.template_id,
            "name": self.name,
            "article_type": self.article_type,
            "article_numbers": self.article_numbers,
            "custom": self.custom,
            "operations": self.operations,
        })

    def to_dict(self):
        return self.to_record().as_dict()


class Operator(db.Model):
    __tablename__ = "operators"
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String, nullable=False)
    token_id = db.Column(db.String, unique=True, nullable=False, index=True)
    machine_type = db.Column(db.String)
    skill_level = db.Column(db.String, default="medium")
    created_at = db.Column(db.DateTime, default=func.now())

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "token_id": self.token_id,
            "machine_type": self.machine_type,
            "skill_level": self.skill_level,
            "created_at": fmt_ts(self.created_at),
        }


class WorkItem(db.Model):
    __tablename__ = "work_items"
    id = db.Column(db.Integer, primary_key=True)
    item_id = db.Column(db.String, unique=True, nullable=False, index=True)
    bundle_id = db.Column(db.String, index=True, nullable=False)
    template_id = db.Column(db.String)
    operation_id = db.Column(db.String)
    operation_name = db.Column(db.String)
    operation_name_np = db.Column(db.String)
    sequence = db.Column(db.Integer)
    pieces = db.Column(db.Integer, default=0)
    estimated_time = db.Column(db.Float, default=0.0)
    total_earnings = db.Column(db.Float, default=0.0)
    machine_type = db.Column(db.String)
    skill_level = db.Column(db.String)
    status = db.Column(db.String, index=True)
    dependencies = db.Column(db.JSON, default=list)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=True)
    priority = db.Column(db.String, default="normal")
    lot_number = db.Column(db.String, index=True)
    article_number = db.Column(db.String)
    article_name = db.Column(db.String)
    color = db.Column(db.String)
    size = db.Column(db.String)
    created_at = db.Column(db.DateTime, default=func.now())
    completed_at = db.Column(db.DateTime, nullable=True)

    @classmethod
    def from_record(cls, record: WorkItemRecord, template_id=None) -> "WorkItem":
        row = cls(item_id=record.id, template_id=template_id)
        row.update_from(record)
        return row

    def update_from(self, record: WorkItemRecord):
        self.bundle_id = record.bundle_id
        self.operation_id = str(record.operation_id)
        self.operation_name = record.operation_name
        self.operation_name_np = record.operation_name_np
        self.sequence = record.sequence
        self.pieces = record.pieces
        self.estimated_time = record.estimated_time
        self.total_earnings = record.total_earnings
        self.machine_type = record.machine_type
        self.skill_level = record.skill_level
        self.status = record.status
        self.dependencies = list(record.dependencies)
        self.operator_id = record.assigned_operator
        self.priority = record.priority
        self.lot_number = record.lot_number
        self.article_number = record.article_number
        self.article_name = record.article_name
        self.color = record.color
        self.size = record.size
        self.created_at = record.created_at
        self.completed_at = record.completed_at

    def to_record(self) -> WorkItemRecord:
        return WorkItemRecord(
            id=self.item_id,
            bundle_id=self.bundle_id,
            operation_id=self.operation_id,
            operation_name=self.operation_name or "",
            operation_name_np=self.operation_name_np or "",
            sequence=self.sequence,
            pieces=self.pieces or 0,
            estimated_time=self.estimated_time or 0.0,
            total_earnings=self.total_earnings or 0.0,
            machine_type=self.machine_type or "",
            skill_level=self.skill_level or "medium",
            status=self.status,
            dependencies=tuple(self.dependencies or []),
            assigned_operator=self.operator_id,
            created_at=self.created_at,
            completed_at=self.completed_at,
            priority=self.priority or "normal",
            lot_number=self.lot_number or "",
            article_number=self.article_number or "",
            article_name=self.article_name or "",
            color=self.color or "",
            size=self.size or "",
        )

    def to_dict(self):
        return self.to_record().as_dict()
