"""Application status state machine.

Statuses move forward along ``submitted -> reviewing -> shortlisted`` and end
in ``accepted`` or ``rejected``. A company may skip ahead (for example accept a
submitted application outright) but never move backwards, and the two final
statuses admit no further change.
"""

from internconnect.schemas.application import ApplicationStatus

PIPELINE_ORDER = (
    ApplicationStatus.SUBMITTED,
    ApplicationStatus.REVIEWING,
    ApplicationStatus.SHORTLISTED,
)

TERMINAL_STATUSES = frozenset({ApplicationStatus.ACCEPTED, ApplicationStatus.REJECTED})


def allowed_transitions(current: ApplicationStatus) -> frozenset[ApplicationStatus]:
    """Statuses reachable from ``current`` in one update."""
    if current in TERMINAL_STATUSES:
        return frozenset()
    later = PIPELINE_ORDER[PIPELINE_ORDER.index(current) + 1 :]
    return frozenset(later) | TERMINAL_STATUSES


def can_transition(current: ApplicationStatus, target: ApplicationStatus) -> bool:
    return target in allowed_transitions(current)


def is_terminal(status: ApplicationStatus) -> bool:
    return status in TERMINAL_STATUSES
