"""
Appointment lifecycle states.
"""

from medibook.core.domain import StatusEnum


class AppointmentStatus(StatusEnum):
    """
    Appointment lifecycle states.

    Valid transitions:
    - PENDING -> CONFIRMED, CANCELLED
    - CONFIRMED -> COMPLETED, CANCELLED
    - COMPLETED -> (terminal)
    - CANCELLED -> (terminal)

    Rescheduling is not a transition: it moves the appointment back to PENDING
    from any non-terminal state.
    """

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"

    def can_transition_to(self, new_status: "AppointmentStatus") -> bool:
        """Check if transition to new status is valid."""
        return new_status in APPOINTMENT_TRANSITIONS[self]

    def is_terminal(self) -> bool:
        """Check if this is a terminal state."""
        return not APPOINTMENT_TRANSITIONS[self]

    def blocks_slot(self) -> bool:
        """Whether an appointment in this state occupies its time slot."""
        return self in BLOCKING_STATUSES


APPOINTMENT_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.CONFIRMED: frozenset({AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED}),
    AppointmentStatus.COMPLETED: frozenset(),
    AppointmentStatus.CANCELLED: frozenset(),
}

# Completed appointments keep their interval; only cancellation frees it
BLOCKING_STATUSES: frozenset[AppointmentStatus] = frozenset(
    status for status in AppointmentStatus if status != AppointmentStatus.CANCELLED
)
