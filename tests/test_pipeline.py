from dataclasses import replace
from datetime import datetime, timezone

import pytest

from garment_erp.pipeline import (
    Article, InvalidInputError, Lot, Roll, SizeConfig, calculate_lot_pieces,
    calculate_roll_pieces, expand_bundles_to_work_items, expand_lot_to_bundles,
    is_template_applicable, operation_dependencies, template_from_dict, with_calculated_pieces,
)

FIXED = datetime(2024, 1, 15, 8, 30, tzinfo=timezone.utc)


def fixed_clock():
    return FIXED


def polo_lot(**overrides):
    data = {
        "lot_number": "LOT1",
        "fabric_name": "Cotton Pique",
        "articles": [{"article_number": "8085", "style_name": "Polo", "sizes": "S:M:L", "ratios": "1:2:1"}],
        "rolls": [{"roll_number": 1, "color_name": "Blue-1", "layer_count": 10}],
    }
    data.update(overrides)
    return Lot.from_dict(data)


def two_step_template(**overrides):
    data = {
        "id": "polo-basic",
        "article_type": "polo-tshirt",
        "operations": [
            {"id": "op1", "sequence": 1, "name_en": "Shoulder Join", "machine_type": "overlock",
             "estimated_time_per_piece": 1.0, "rate": 2.5, "dependencies": []},
            {"id": "op2", "sequence": 2, "name_en": "Hemming", "machine_type": "flatlock",
             "estimated_time_per_piece": 1.5, "rate": 3.0, "dependencies": ["op1"]},
        ],
    }
    data.update(overrides)
    return template_from_dict(data)


# -------------------------------------------------------------------
# Records
# -------------------------------------------------------------------
def test_size_config_is_reconciled_on_construction():
    cfg = SizeConfig.from_strings("S,M,L,XL", "1;2")
    assert cfg.sizes == ("S", "M", "L", "XL")
    assert cfg.ratios == ("1", "2", "1", "1")
    assert cfg.as_strings() == {"sizes": "S:M:L:XL", "ratios": "1:2:1:1"}

def test_lot_requires_identity_fields():
    with pytest.raises(InvalidInputError) as exc:
        polo_lot(lot_number="")
    assert exc.value.code == "MISSING_LOT_NUMBER"
    with pytest.raises(InvalidInputError):
        polo_lot(articles=[{"article_number": " ", "style_name": "Polo"}])

def test_lot_rejects_duplicate_articles():
    with pytest.raises(InvalidInputError) as exc:
        polo_lot(articles=[{"article_number": "8085"}, {"article_number": "8085"}])
    assert exc.value.code == "DUPLICATE_ARTICLE"

def test_negative_layers_rejected():
    with pytest.raises(InvalidInputError):
        Roll(id="R1", roll_number=1, layer_count=-3)


# -------------------------------------------------------------------
# Roll piece calculator
# -------------------------------------------------------------------
def test_roll_pieces_is_layers_times_ratio_sum():
    lot = polo_lot()
    assert calculate_roll_pieces(lot.rolls[0], lot.articles, lot.size_config) == 10 * (1 + 2 + 1)

def test_roll_pieces_sums_articles():
    lot = polo_lot(articles=[
        {"article_number": "8085", "sizes": "S:M:L", "ratios": "1:2:1"},
        {"article_number": "2233", "sizes": "M L", "ratios": "3 3"},
    ])
    assert calculate_roll_pieces(lot.rolls[0], lot.articles, lot.size_config) == 40 + 60

def test_missing_size_config_falls_back_to_one_per_layer():
    lot = polo_lot(articles=[
        {"article_number": "8085", "sizes": "S:M:L", "ratios": "1:2:1"},
        {"article_number": "9999", "style_name": "No sizes yet"},
    ])
    diagnostics = []
    pieces = calculate_roll_pieces(lot.rolls[0], lot.articles, lot.size_config, diagnostics)
    assert pieces == 40 + 10
    assert [d.code for d in diagnostics] == ["MISSING_SIZE_CONFIG"]
    assert diagnostics[0].context["article_number"] == "9999"

def test_no_layers_or_no_articles_gives_zero():
    lot = polo_lot()
    empty_roll = Roll(id="R9", roll_number=9, layer_count=0)
    assert calculate_roll_pieces(empty_roll, lot.articles, lot.size_config) == 0
    assert calculate_roll_pieces(lot.rolls[0], (), lot.size_config) == 0

def test_with_calculated_pieces_recomputes_after_layer_change():
    lot = with_calculated_pieces(polo_lot())
    assert lot.rolls[0].pieces == 40
    thicker = replace(lot, rolls=(replace(lot.rolls[0], layer_count=25),))
    assert with_calculated_pieces(thicker).rolls[0].pieces == 100


# -------------------------------------------------------------------
# Lot -> bundles
# -------------------------------------------------------------------
def test_example_lot_makes_three_bundles():
    bundles = expand_lot_to_bundles(polo_lot(), clock=fixed_clock)
    assert [(b.size, b.pieces) for b in bundles] == [("S", 10), ("M", 20), ("L", 10)]
    assert [b.bundle_id for b in bundles] == ["LOT1-B001", "LOT1-B002", "LOT1-B003"]
    first = bundles[0]
    assert first.color == "Blue-1"
    assert first.layers == 10 and first.ratio == 1
    assert first.key == "R1-8085-S"
    assert first.article_name == "Polo"
    assert first.lot_number == "LOT1" and first.fabric_name == "Cotton Pique"
    assert all(b.status == "cut_ready" and b.created_at == FIXED for b in bundles)

def test_bundle_order_is_roll_then_article_then_size():
    lot = polo_lot(
        articles=[
            {"article_number": "A", "sizes": "S:M", "ratios": "1:1"},
            {"article_number": "B", "sizes": "XL", "ratios": "2"},
        ],
        rolls=[
            {"roll_number": 1, "color_name": "Red", "layer_count": 4},
            {"roll_number": 2, "color_name": "Green", "layer_count": 6},
        ],
    )
    bundles = expand_lot_to_bundles(lot)
    assert [(b.color, b.article_number, b.size) for b in bundles] == [
        ("Red", "A", "S"), ("Red", "A", "M"), ("Red", "B", "XL"),
        ("Green", "A", "S"), ("Green", "A", "M"), ("Green", "B", "XL"),
    ]

def test_bundle_totals_match_roll_calculation():
    lot = polo_lot(
        articles=[
            {"article_number": "A", "sizes": "S:M:L:XL", "ratios": "1:2:2:1"},
            {"article_number": "B", "sizes": "M,L", "ratios": "3,0"},
        ],
        rolls=[
            {"roll_number": 1, "color_name": "Red", "layer_count": 12},
            {"roll_number": 2, "color_name": "Navy", "layer_count": 7},
            {"roll_number": 3, "color_name": "Navy", "layer_count": 0},
        ],
    )
    bundles = expand_lot_to_bundles(lot)
    assert sum(b.pieces for b in bundles) == calculate_lot_pieces(lot)

def test_zero_ratio_sizes_are_skipped():
    lot = polo_lot(articles=[{"article_number": "8085", "sizes": "S:M:L", "ratios": "1:0:x"}])
    bundles = expand_lot_to_bundles(lot)
    assert [b.size for b in bundles] == ["S"]
    assert all(b.pieces > 0 for b in bundles)

def test_empty_bundle_result_is_reported():
    diagnostics = []
    lot = polo_lot(rolls=[{"roll_number": 1, "color_name": "Blue", "layer_count": 0}])
    assert expand_lot_to_bundles(lot, diagnostics=diagnostics) == []
    assert diagnostics[0].code == "NO_BUNDLES"
    assert diagnostics[0].context["lot_number"] == "LOT1"

def test_custom_bundle_id_factory():
    bundles = expand_lot_to_bundles(polo_lot(), id_factory=lambda i: f"X{i}")
    assert [b.bundle_id for b in bundles] == ["X0", "X1", "X2"]

def test_expansion_is_repeatable():
    lot = polo_lot()
    assert expand_lot_to_bundles(lot, clock=fixed_clock) == expand_lot_to_bundles(lot, clock=fixed_clock)


# -------------------------------------------------------------------
# Templates
# -------------------------------------------------------------------
def test_template_applicability():
    bundle = expand_lot_to_bundles(polo_lot())[0]
    universal = two_step_template(id="universal-garment-template", article_type="polo")
    assert is_template_applicable(universal, bundle)
    assert is_template_applicable(two_step_template(article_type="universal"), bundle)
    # category templates are not compared against the garment category
    assert is_template_applicable(two_step_template(article_type="jacket"), bundle)

def test_custom_template_scoped_to_articles():
    bundle = expand_lot_to_bundles(polo_lot())[0]
    assert is_template_applicable(two_step_template(id="custom-1", article_numbers=None), bundle)
    assert is_template_applicable(two_step_template(id="custom-1", article_numbers=[]), bundle)
    assert is_template_applicable(two_step_template(custom=True, article_numbers=["8085", "1"]), bundle)
    assert not is_template_applicable(two_step_template(custom=True, article_numbers=["1234"]), bundle)
    assert not is_template_applicable(two_step_template(id="custom-2", article_numbers="1234, 5678"), bundle)

def test_dependencies_default_to_previous_sequence():
    template = template_from_dict({
        "id": "t",
        "operations": [
            {"id": 10, "sequence": 1},
            {"id": 20, "sequence": 2},
            {"id": 30, "sequence": 3, "dependencies": [10]},
        ],
    })
    ops = template.operations
    assert operation_dependencies(template, ops[0]) == ()
    assert operation_dependencies(template, ops[1]) == (10,)
    assert operation_dependencies(template, ops[2]) == (10,)

def test_template_validation():
    with pytest.raises(InvalidInputError) as exc:
        template_from_dict({"id": "empty", "operations": []})
    assert exc.value.code == "EMPTY_TEMPLATE"
    with pytest.raises(InvalidInputError) as exc:
        template_from_dict({"id": "t", "operations": [{"sequence": 1, "name_en": "Cut"}]})
    assert exc.value.code == "MISSING_OPERATION_ID"

def test_skill_levels_are_normalized():
    template = template_from_dict({
        "id": "t",
        "operations": [
            {"id": 1, "sequence": 1, "skill_level": "beginner"},
            {"id": 2, "sequence": 2, "skill_level": "high"},
            {"id": 3, "sequence": 3},
        ],
    })
    assert [op.skill_level for op in template.operations] == ["easy", "hard", "medium"]


# -------------------------------------------------------------------
# Bundles -> work items
# -------------------------------------------------------------------
def test_example_work_items():
    bundles = expand_lot_to_bundles(polo_lot())
    items = expand_bundles_to_work_items(bundles, two_step_template(), clock=fixed_clock)

    assert len(items) == 6
    assert [i.id for i in items] == [
        "LOT1-B001-op1", "LOT1-B001-op2",
        "LOT1-B002-op1", "LOT1-B002-op2",
        "LOT1-B003-op1", "LOT1-B003-op2",
    ]
    first = [i for i in items if i.sequence == 1]
    second = [i for i in items if i.sequence == 2]
    assert [i.status for i in first] == ["ready"] * 3
    assert [i.total_earnings for i in first] == [25, 50, 25]
    assert [i.status for i in second] == ["waiting"] * 3
    assert [i.total_earnings for i in second] == [30, 60, 30]
    for f, s in zip(first, second):
        assert s.dependencies == (f.id,)
        assert s.size == f.size
    assert first[0].dependencies == ()

def test_work_item_fields():
    bundles = expand_lot_to_bundles(polo_lot())
    item = expand_bundles_to_work_items(bundles, two_step_template(), clock=fixed_clock)[3]
    assert item.id == "LOT1-B002-op2"
    assert item.pieces == 20
    assert item.estimated_time == 20 * 1.5
    assert item.machine_type == "flatlock"
    assert item.skill_level == "medium"
    assert item.assigned_operator is None
    assert item.created_at == FIXED
    assert item.priority == "normal"
    assert (item.lot_number, item.article_number, item.color) == ("LOT1", "8085", "Blue-1")

def test_work_item_count_and_readiness():
    lot = polo_lot(
        articles=[{"article_number": "8085", "sizes": "S:M:L:XL:XXL", "ratios": "1:2:2:1:1"}],
        rolls=[
            {"roll_number": 1, "color_name": "Blue", "layer_count": 8},
            {"roll_number": 2, "color_name": "Grey", "layer_count": 5},
        ],
    )
    bundles = expand_lot_to_bundles(lot)
    template = template_from_dict({
        "id": "five",
        "operations": [{"id": n, "sequence": n, "rate": 1.25} for n in range(1, 6)],
    })
    items = expand_bundles_to_work_items(bundles, template)
    assert len(items) == len(bundles) * 5
    for bundle in bundles:
        mine = [i for i in items if i.bundle_id == bundle.bundle_id]
        assert [i.status for i in mine].count("ready") == 1
        assert mine[0].sequence == 1 and mine[0].status == "ready"
        assert mine[2].dependencies == (f"{bundle.bundle_id}-2",)
    for item in items:
        assert item.total_earnings == item.pieces * 1.25

def test_sort_is_by_bundle_then_sequence():
    bundles = list(reversed(expand_lot_to_bundles(polo_lot())))
    template = template_from_dict({
        "id": "t",
        "operations": [{"id": "b", "sequence": 2}, {"id": "a", "sequence": 1}],
    })
    items = expand_bundles_to_work_items(bundles, template)
    assert [(i.bundle_id, i.sequence) for i in items] == sorted((i.bundle_id, i.sequence) for i in items)

def test_no_matching_bundles_reports_context():
    bundles = expand_lot_to_bundles(polo_lot())
    template = two_step_template(id="custom-jacket", article_numbers=["7001"])
    diagnostics = []
    assert expand_bundles_to_work_items(bundles, template, diagnostics=diagnostics) == []
    diag = diagnostics[0]
    assert diag.code == "NO_WORK_ITEMS"
    assert diag.context["bundle_count"] == 3
    assert diag.context["template_id"] == "custom-jacket"
    assert diag.context["template_articles"] == ["7001"]
    assert diag.context["bundle_articles"] == ["8085", "8085", "8085"]

def test_bundle_without_identity_fails_loudly():
    bundle = expand_lot_to_bundles(polo_lot())[0]
    with pytest.raises(InvalidInputError):
        expand_bundles_to_work_items([replace(bundle, article_number="")], two_step_template())
    with pytest.raises(InvalidInputError):
        expand_bundles_to_work_items([replace(bundle, lot_number="")], two_step_template())

def test_template_without_operations_fails_loudly():
    bundles = expand_lot_to_bundles(polo_lot())
    with pytest.raises(InvalidInputError):
        expand_bundles_to_work_items(bundles, replace(two_step_template(), operations=()))

def test_unconfigured_article_is_reported_when_cutting():
    lot = polo_lot(articles=[
        {"article_number": "A", "sizes": "S", "ratios": "1"},
        {"article_number": "B", "style_name": "No sizes yet"},
    ])
    diagnostics = []
    bundles = expand_lot_to_bundles(lot, diagnostics=diagnostics)

    assert [b.article_number for b in bundles] == ["A"]
    assert [d.code for d in diagnostics] == ["MISSING_SIZE_CONFIG"]
    assert diagnostics[0].context == {"article_number": "B", "lot_number": "LOT1"}
    # the calculator still counts one piece per layer for B
    assert sum(b.pieces for b in bundles) == 10
    assert calculate_lot_pieces(lot) == 20

def test_overflowing_numbers_fall_back_to_default():
    lot = Lot.from_dict({"lot_number": "L", "rolls": [
        {"layer_count": "1e400", "marked_weight": "inf"},
        {"layer_count": "inf"},
    ]})
    assert [r.layer_count for r in lot.rolls] == [0, 0]
    assert lot.rolls[0].marked_weight == float("inf")
