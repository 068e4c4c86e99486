"""
Entity Validation

DESIGN DECISION: Every repository operation validates its input BEFORE
any backend mutation. Both backends share this module, so a request
rejected by one backend is rejected identically by the other.

Checks performed here:
- Schema checks on incoming fields (required fields, non-negative price,
  positive duration, known status values)
- The appointment status state machine
- The deletion policy (only CANCELLED appointments may be deleted)
- Month query bounds

IMPORTANT: Validation NEVER silently fixes input.
It raises LedgerValidationError describing every issue found.
"""

from typing import Any, Type, TypeVar, Union

from pydantic import BaseModel, ValidationError

from studio_ledger.models.booking import (
    Appointment,
    AppointmentStatus,
    MonthPeriod,
    ValidationIssue,
)


ModelT = TypeVar("ModelT", bound=BaseModel)


# Legal status moves. Same-state requests are handled as no-ops before
# this table is consulted.
ALLOWED_TRANSITIONS: dict[AppointmentStatus, frozenset[AppointmentStatus]] = {
    AppointmentStatus.PENDING: frozenset({
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
    }),
    AppointmentStatus.COMPLETED: frozenset({AppointmentStatus.PENDING}),
    AppointmentStatus.CANCELLED: frozenset({AppointmentStatus.PENDING}),
}


class LedgerValidationError(ValueError):
    """An operation was rejected before reaching the backend."""

    def __init__(self, operation: str, issues: list[ValidationIssue]):
        self.operation = operation
        self.issues = issues
        summary = "; ".join(issue.message for issue in issues)
        super().__init__(f"{operation} rejected: {summary}")

    def to_dicts(self) -> list[dict]:
        return [issue.model_dump() for issue in self.issues]


def _issues_from_pydantic(error: ValidationError) -> list[ValidationIssue]:
    issues = []
    for err in error.errors():
        field = ".".join(str(part) for part in err["loc"]) or "input"
        issue_type = "missing" if err["type"] == "missing" else "invalid_value"
        issues.append(ValidationIssue(
            field=field,
            issue_type=issue_type,
            message=f"{field}: {err['msg']}",
        ))
    return issues


class LedgerValidator:
    """Validates repository inputs and lifecycle rules."""

    @staticmethod
    def parse(
        model: Type[ModelT],
        data: Union[ModelT, dict[str, Any]],
        operation: str,
    ) -> ModelT:
        """
        Coerce caller input into the expected input model.

        Accepts an instance of the model or a plain mapping. An instance of
        a subclass (a stored Appointment passed as a new booking) is cut
        down to the fields the model declares, so its id is dropped.
        """
        if type(data) is model:
            return data
        if isinstance(data, model):
            data = data.model_dump(include=set(model.model_fields))
        elif isinstance(data, BaseModel):
            data = data.model_dump(exclude_unset=True)
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise LedgerValidationError(operation, _issues_from_pydantic(e))

    @staticmethod
    def parse_status(
        status: Union[AppointmentStatus, str],
        operation: str = "set_appointment_status",
    ) -> AppointmentStatus:
        try:
            return AppointmentStatus(status)
        except ValueError:
            raise LedgerValidationError(operation, [ValidationIssue(
                field="status",
                issue_type="invalid_value",
                message=f"Unknown appointment status: {status!r}",
            )])

    @staticmethod
    def period(month_index: int, year: int) -> MonthPeriod:
        """Build the month period, rejecting out-of-range values."""
        try:
            return MonthPeriod(month_index=month_index, year=year)
        except ValidationError as e:
            raise LedgerValidationError(
                "list_appointments", _issues_from_pydantic(e)
            )

    @staticmethod
    def check_transition(
        appointment: Appointment,
        new_status: AppointmentStatus,
    ) -> bool:
        """
        Check a status change against the state machine.

        Returns False when the appointment is already in new_status
        (nothing to write), True when the move is legal.
        """
        if appointment.status == new_status:
            return False
        if new_status not in ALLOWED_TRANSITIONS[appointment.status]:
            raise LedgerValidationError("set_appointment_status", [ValidationIssue(
                field="status",
                issue_type="illegal_transition",
                message=(
                    f"Cannot move appointment {appointment.id} from "
                    f"{appointment.status.value} to {new_status.value}"
                ),
            )])
        return True

    @staticmethod
    def check_deletable(appointment: Appointment) -> None:
        """Only cancelled appointments may be deleted."""
        if appointment.status != AppointmentStatus.CANCELLED:
            raise LedgerValidationError("delete_appointment", [ValidationIssue(
                field="status",
                issue_type="not_cancelled",
                message=(
                    f"Appointment {appointment.id} is {appointment.status.value}; "
                    "only CANCELLED appointments can be deleted"
                ),
            )])
