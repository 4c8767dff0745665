"""Per-operator earnings from their work items."""

from dataclasses import asdict, dataclass

from .workflow import ASSIGNED, COMPLETED, IN_PROGRESS


@dataclass
class EarningsSummary:
    operator_id: object
    total_earnings: float = 0.0
    pending_earnings: float = 0.0
    total_pieces: int = 0
    work_count: int = 0
    completed_count: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


def summarize_earnings(items, operator_id) -> EarningsSummary:
    summary = EarningsSummary(operator_id=operator_id)
    for item in items:
        if item.assigned_operator != operator_id:
            continue
        summary.work_count += 1
        if item.status == COMPLETED:
            summary.completed_count += 1
            summary.total_earnings += item.total_earnings
            summary.total_pieces += item.pieces
        elif item.status in (ASSIGNED, IN_PROGRESS):
            summary.pending_earnings += item.total_earnings
    return summary
