"""Work item lifecycle: assignment, start, completion and dependent release.

    ready/waiting --(dependencies completed)--> ready
    ready --assign--> assigned --start--> in_progress --complete--> completed
    assigned ----------------------------------complete--> completed
"""

import logging
from dataclasses import replace

from .bundles import utcnow
from .errors import WorkflowError
from .machines import check_compatibility
from .work_items import READY, WAITING

logger = logging.getLogger(__name__)

ASSIGNED = "assigned"
IN_PROGRESS = "in_progress"
COMPLETED = "completed"

WORK_STATUSES = (READY, WAITING, ASSIGNED, IN_PROGRESS, COMPLETED)


def assign(item, operator_id, operator_machine):
    if item.status != READY:
        raise WorkflowError("INVALID_STATUS", work_item=item.id, current=item.status,
                            expected=READY)
    compat = check_compatibility(operator_machine, item.machine_type)
    if not compat.compatible:
        raise WorkflowError("MACHINE_INCOMPATIBLE", work_item=item.id,
                            operator=operator_id, reason=compat.reason)
    logger.info("Assigned %s to operator %s", item.id, operator_id)
    return replace(item, status=ASSIGNED, assigned_operator=operator_id)


def start(item):
    if item.status != ASSIGNED:
        raise WorkflowError("INVALID_STATUS", work_item=item.id, current=item.status,
                            expected=ASSIGNED)
    return replace(item, status=IN_PROGRESS)


def release_dependents(items):
    """Mark waiting items ready once all of their dependencies are completed."""
    done = {item.id for item in items if item.status == COMPLETED}
    released = []
    for item in items:
        if item.status == WAITING and all(dep in done for dep in item.dependencies):
            item = replace(item, status=READY)
        released.append(item)
    return released


def complete(items, item_id, clock=None):
    """Complete ``item_id`` and return the updated list of ``items``."""
    clock = clock or utcnow
    items = list(items)
    for index, item in enumerate(items):
        if item.id == item_id:
            break
    else:
        raise WorkflowError("WORK_ITEM_NOT_FOUND", work_item=item_id)

    if item.status not in (ASSIGNED, IN_PROGRESS):
        raise WorkflowError("INVALID_STATUS", work_item=item.id, current=item.status,
                            expected=IN_PROGRESS)
    items[index] = replace(item, status=COMPLETED, completed_at=clock())
    return release_dependents(items)
