from flask import Blueprint, request, jsonify, current_app, send_file
from sqlalchemy.exc import IntegrityError
import os

from . import db, services
from .importer import read_operations, read_rolls
from .models import Operator, ProcessTemplate
from .pipeline.errors import (
    InvalidInputError, NotFoundError, PipelineError, SpreadsheetError, WorkflowError,
)
from .pipeline.parsing import parse_tokens, reconcile_size_config
from .pipeline.workflow import WORK_STATUSES
from .qr_utils import bundle_qr_payload, make_bundle_qr

api = Blueprint("api", __name__)

STATUS_FOR = {
    InvalidInputError: 400,
    SpreadsheetError: 400,
    NotFoundError: 404,
    WorkflowError: 409,
}


@api.errorhandler(PipelineError)
def pipeline_error(e):
    status = STATUS_FOR.get(type(e), 400)
    current_app.logger.warning("api error %s: %s", status, e)
    return jsonify({"success": False, "error": e.code, **e.as_dict()}), status


def warnings_of(result):
    return [d.as_dict() for d in result.diagnostics]


# -------------------------------------------------------------------
# Size / ratio preview
# -------------------------------------------------------------------
@api.post("/parse-sizes")
def parse_sizes():
    data = request.get_json(silent=True) or {}
    sizes, ratios = reconcile_size_config(data.get("sizes"), data.get("ratios"))
    return jsonify({
        "success": True,
        "sizes": sizes,
        "ratios": ratios,
        "size_tokens": parse_tokens(sizes),
        "ratio_tokens": parse_tokens(ratios),
    })


# -------------------------------------------------------------------
# Lots (WIP entries)
# -------------------------------------------------------------------
@api.post("/lots")
def create_lot():
    data = request.get_json(silent=True) or {}
    result = services.save_lot(data)
    lot = result.records[0]
    return jsonify({"success": True, "lot": lot.to_dict(), "warnings": warnings_of(result)})


@api.post("/lots/upload")
def upload_lot():
    # Roll sheet as a file; lot header and article sizes as form fields
    if "file" not in request.files:
        return jsonify({"success": False, "error": "No file"}), 400
    f = request.files["file"]
    form = request.form
    # style names may contain spaces, so they are comma separated only
    names = [s.strip() for s in (form.get("style_names") or "").split(",")]
    articles = [
        {"article_number": number, "style_name": names[i] if i < len(names) else ""}
        for i, number in enumerate(parse_tokens(form.get("article_numbers")))
    ]
    payload = {
        "lot_number": form.get("lot_number"),
        "fabric_name": form.get("fabric_name"),
        "fabric_width": form.get("fabric_width"),
        "nepali_date": form.get("nepali_date"),
        "articles": articles,
        "sizes": form.get("sizes"),
        "ratios": form.get("ratios"),
        "rolls": read_rolls(f, f.filename),
    }
    result = services.save_lot(payload)
    lot = result.records[0]
    return jsonify({"success": True, "lot": lot.to_dict(), "warnings": warnings_of(result)})


@api.get("/lots/<lot_number>")
def get_lot(lot_number):
    return jsonify({"success": True, "lot": services.get_lot(lot_number).to_dict()})


@api.post("/lots/<lot_number>/bundles")
def create_bundles(lot_number):
    result = services.create_bundles(lot_number, current_app.config.get("BUNDLE_ID_WIDTH", 3))
    return jsonify({
        "success": True,
        "bundles": [b.as_dict() for b in result.records],
        "total_pieces": sum(b.pieces for b in result.records),
        "warnings": warnings_of(result),
    })


# -------------------------------------------------------------------
# Bundles
# -------------------------------------------------------------------
@api.get("/bundles")
def list_bundles():
    rows = services.list_bundles(request.args.get("lot"))
    return jsonify({"success": True, "bundles": [b.to_dict() for b in rows]})


@api.get("/bundles/<bundle_id>/qr")
def bundle_qr(bundle_id):
    bundle = services.get_bundle(bundle_id)
    if not bundle.qr_path or not os.path.exists(bundle.qr_path):
        bundle.qr_path = make_bundle_qr(
            current_app.config["QR_DIR"], bundle_qr_payload(bundle), f"bundle_{bundle.bundle_id}.png"
        )
        db.session.commit()
    return send_file(bundle.qr_path, mimetype="image/png",
                     download_name=f"bundle_{bundle.bundle_id}.png")


# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------
@api.get("/templates")
def list_templates():
    services.ensure_default_template()
    rows = ProcessTemplate.query.order_by(ProcessTemplate.template_id).all()
    return jsonify({"success": True, "templates": [t.to_dict() for t in rows]})


@api.post("/templates")
def create_template():
    data = request.get_json(silent=True) or {}
    row = services.save_template(data)
    return jsonify({"success": True, "template": row.to_dict()})


@api.post("/templates/upload")
def upload_template():
    if "file" not in request.files:
        return jsonify({"success": False, "error": "No file"}), 400
    f = request.files["file"]
    form = request.form
    payload = {
        "id": form.get("id"),
        "name": form.get("name"),
        "article_type": form.get("article_type") or "custom",
        "article_numbers": form.get("article_numbers") or None,
        "custom": (form.get("article_type") or "custom") == "custom",
        "operations": read_operations(f, f.filename),
    }
    row = services.save_template(payload)
    return jsonify({"success": True, "template": row.to_dict(), "rows": len(row.operations)})


# -------------------------------------------------------------------
# Work items
# -------------------------------------------------------------------
@api.post("/work-items/generate")
def generate_work_items():
    data = request.get_json(silent=True) or {}
    template_id = (data.get("template_id") or "").strip()
    if not template_id:
        return jsonify({"success": False, "error": "template_id required"}), 400
    result = services.create_work_items(
        template_id, bundle_ids=data.get("bundle_ids"), lot_number=data.get("lot_number")
    )
    return jsonify({
        "success": True,
        "work_items": [i.as_dict() for i in result.records],
        "warnings": warnings_of(result),
    })


@api.get("/work-items")
def list_work_items():
    status = request.args.get("status")
    if status and status not in WORK_STATUSES:
        raise InvalidInputError("UNKNOWN_STATUS", status=status, expected=list(WORK_STATUSES))
    rows = services.list_work_items(
        status=status,
        operator_id=request.args.get("operator", type=int),
        bundle_id=request.args.get("bundle"),
    )
    return jsonify({"success": True, "work_items": [r.to_dict() for r in rows]})


@api.post("/work-items/<item_id>/assign")
def assign_work_item(item_id):
    data = request.get_json(silent=True) or {}
    operator_id = data.get("operator_id")
    if operator_id is None:
        return jsonify({"success": False, "error": "operator_id required"}), 400
    row = services.assign_work(item_id, operator_id)
    return jsonify({"success": True, "work_item": row.to_dict()})


@api.post("/work-items/<item_id>/start")
def start_work_item(item_id):
    row = services.start_work(item_id)
    return jsonify({"success": True, "work_item": row.to_dict()})


@api.post("/work-items/<item_id>/complete")
def complete_work_item(item_id):
    result = services.complete_work(item_id)
    completed, released = result.records[0], result.records[1:]
    return jsonify({
        "success": True,
        "work_item": completed.as_dict(),
        "released": [r.id for r in released],
    })


# -------------------------------------------------------------------
# Operators
# -------------------------------------------------------------------
@api.get("/operators")
def list_operators():
    rows = Operator.query.order_by(Operator.name).all()
    return jsonify({"success": True, "operators": [o.to_dict() for o in rows]})


@api.post("/operators")
def create_operator():
    data = request.get_json(silent=True) or {}
    name = (data.get("name") or "").strip()
    token_id = (data.get("token_id") or "").strip()
    if not name or not token_id:
        return jsonify({"success": False, "error": "name and token_id required"}), 400
    try:
        op = services.add_operator(name, token_id, data.get("machine_type"), data.get("skill_level"))
    except IntegrityError:
        db.session.rollback()
        return jsonify({"success": False, "error": "Token ID already exists"}), 409
    return jsonify({"success": True, "operator": op.to_dict()})


@api.get("/operators/<int:operator_id>/earnings")
def operator_earnings(operator_id):
    summary = services.operator_earnings(operator_id)
    return jsonify({"success": True, "earnings": summary.as_dict()})
