"""Read roll sheets and operation sheets uploaded as CSV or Excel."""

import pandas as pd

from .pipeline.errors import SpreadsheetError
from .pipeline.parsing import parse_tokens

ROLL_COLUMNS = {"color", "layers"}
OPERATION_COLUMNS = {"sequence", "name", "machine_type", "time_per_piece", "rate"}


def read_frame(f, filename=None) -> pd.DataFrame:
    """Load an uploaded file into a DataFrame with normalised column names."""
    name = (filename or getattr(f, "filename", "") or "").lower()
    try:
        df = pd.read_excel(f) if name.endswith((".xlsx", ".xls")) else pd.read_csv(f)
    except Exception as e:
        raise SpreadsheetError("UNREADABLE_FILE", filename=name, error=str(e)) from e
    df.columns = [str(c).strip().lower().replace(" ", "_") for c in df.columns]
    return df.dropna(how="all")


def _require(df, required):
    missing = required - set(df.columns)
    if missing:
        raise SpreadsheetError("MISSING_COLUMNS", columns=sorted(missing))


def _cell(row, column, default=None):
    value = row.get(column, default)
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return default
    return value


def _ident(value):
    """Operation ids from a sheet come back as numpy or float scalars."""
    if hasattr(value, "item"):
        value = value.item()
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def read_rolls(f, filename=None) -> list[dict]:
    """Rows of ``color, layers[, roll_number, marked_weight, actual_weight]``.

    Returns plain dicts in the shape accepted by ``Lot.from_dict``.
    """
    df = read_frame(f, filename)
    _require(df, ROLL_COLUMNS)

    rolls = []
    for position, row in enumerate(df.to_dict(orient="records"), start=1):
        rolls.append({
            "roll_number": _cell(row, "roll_number", position),
            "color_name": str(_cell(row, "color", "")).strip(),
            "layer_count": _cell(row, "layers", 0),
            "marked_weight": _cell(row, "marked_weight", 0.0),
            "actual_weight": _cell(row, "actual_weight", 0.0),
        })
    return rolls


def read_operations(f, filename=None) -> list[dict]:
    """Rows of a template sheet, in the shape accepted by ``operation_from_dict``.

    ``dependencies`` cells may hold several ids with any separator
    (``"1,2"``, ``"1:2"``); an empty cell means "previous sequence".
    """
    df = read_frame(f, filename)
    _require(df, OPERATION_COLUMNS)

    operations = []
    for row in df.to_dict(orient="records"):
        sequence = int(_cell(row, "sequence", 0) or 0)
        deps = _cell(row, "dependencies")
        if deps is not None:
            deps = [int(float(d)) if d.replace(".", "", 1).isdigit() else d
                    for d in parse_tokens(str(deps))]
        operations.append({
            "id": _ident(_cell(row, "id", sequence)),
            "sequence": sequence,
            "name_en": str(_cell(row, "name", "")).strip(),
            "name_np": str(_cell(row, "name_np", "")).strip(),
            "machine_type": str(_cell(row, "machine_type", "")).strip(),
            "estimated_time_per_piece": float(_cell(row, "time_per_piece", 0.0) or 0.0),
            "rate": float(_cell(row, "rate", 0.0) or 0.0),
            "skill_level": _cell(row, "skill_level"),
            "dependencies": deps,
        })
    operations.sort(key=lambda op: op["sequence"])
    return operations
