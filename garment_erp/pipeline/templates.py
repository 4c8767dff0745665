"""Process templates: construction, dependency resolution and bundle matching."""

from typing import Any, Mapping

from .errors import InvalidInputError
from .parsing import parse_tokens
from .records import Operation, Template, _number, _text
from .skills import normalize_skill_level

UNIVERSAL_TEMPLATE_ID = "universal-garment-template"
CUSTOM_PREFIX = "custom-"


def is_custom(template) -> bool:
    return bool(template.custom) or str(template.id).startswith(CUSTOM_PREFIX)


def is_template_applicable(template, bundle) -> bool:
    """Decide whether ``template`` can be used for ``bundle``.

    Universal templates apply to everything.  Custom templates apply to all
    bundles unless they list article numbers, in which case the bundle's
    article must be listed.  Category templates are not compared against
    any garment category and always apply.
    """
    if template.article_type == "universal" or template.id == UNIVERSAL_TEMPLATE_ID:
        return True
    if is_custom(template):
        return not template.article_numbers or bundle.article_number in template.article_numbers
    return True


def operation_dependencies(template, operation) -> tuple:
    """Explicit dependencies, or the operation one sequence step earlier."""
    if operation.dependencies is not None:
        return tuple(operation.dependencies)
    for other in template.operations:
        if other.sequence == operation.sequence - 1:
            return (other.id,)
    return ()


def _id_list(value):
    if value is None:
        return None
    if isinstance(value, str):
        return tuple(parse_tokens(value))
    return tuple(value)


def operation_from_dict(data: Mapping[str, Any], position: int = 1) -> Operation:
    op_id = data.get("id")
    if op_id is None or _text(op_id) == "":
        raise InvalidInputError("MISSING_OPERATION_ID", position=position,
                                name=data.get("name_en") or data.get("name"))
    return Operation(
        id=op_id,
        sequence=_number(data.get("sequence"), int, position) or position,
        name_en=_text(data.get("name_en") or data.get("name")),
        name_np=_text(data.get("name_np")),
        machine_type=_text(data.get("machine_type")),
        estimated_time_per_piece=_number(
            data.get("estimated_time_per_piece", data.get("time_per_piece"))
        ),
        rate=_number(data.get("rate")),
        skill_level=normalize_skill_level(data.get("skill_level")),
        dependencies=_id_list(data.get("dependencies")),
    )


def template_from_dict(data: Mapping[str, Any]) -> Template:
    template_id = _text(data.get("id"))
    if not template_id:
        raise InvalidInputError("MISSING_TEMPLATE_ID", name=data.get("name"))

    operations = tuple(
        operation_from_dict(raw, position=i)
        for i, raw in enumerate(data.get("operations") or [], start=1)
    )
    if not operations:
        raise InvalidInputError("EMPTY_TEMPLATE", template_id=template_id)

    article_numbers = _id_list(data.get("article_numbers"))
    return Template(
        id=template_id,
        name=_text(data.get("name")),
        article_type=_text(data.get("article_type")) or "universal",
        article_numbers=article_numbers or None,
        custom=bool(data.get("custom", False)),
        operations=operations,
    )
