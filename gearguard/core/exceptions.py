"""
Domain errors raised by the service layer.
Each carries the HTTP status it maps to; gearguard.main turns them into JSON.
"""
from typing import Any, Dict, List, Optional

from fastapi import status


class GearGuardError(Exception):
    """Base class for every error surfaced to API callers."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "InternalError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"success": False, "error": self.error, "detail": self.message}


class RequestValidationFailed(GearGuardError):
    """Bad or missing input fields. Lists every violation, not just the first."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "ValidationError"

    def __init__(self, errors: List[Dict[str, str]]):
        fields = ", ".join(e["field"] for e in errors)
        super().__init__(f"Invalid fields: {fields}")
        self.errors = errors

    @classmethod
    def single(cls, field: str, message: str) -> "RequestValidationFailed":
        return cls([{"field": field, "message": message}])

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["errors"] = self.errors
        return body


class NotFoundError(GearGuardError):
    status_code = status.HTTP_404_NOT_FOUND
    error = "NotFound"

    def __init__(self, entity: str, entity_id: Any = None):
        super().__init__(f"{entity} not found.")
        self.entity = entity
        self.entity_id = entity_id


class ForbiddenError(GearGuardError):
    status_code = status.HTTP_403_FORBIDDEN
    error = "Forbidden"

    def __init__(self, required: str, actual: Optional[str] = None):
        message = f"Access denied. Required: {required}."
        if actual:
            message += f" Your role: {actual}."
        super().__init__(message)


class InactiveEquipmentError(GearGuardError):
    status_code = status.HTTP_409_CONFLICT
    error = "InactiveEquipment"

    def __init__(self, equipment_id: Any):
        super().__init__(
            "This equipment is marked as scrapped/inactive and cannot have new requests."
        )
        self.equipment_id = equipment_id


class InvalidTransitionError(GearGuardError):
    status_code = status.HTTP_409_CONFLICT
    error = "InvalidTransition"

    def __init__(self, from_stage, to_stage):
        from_value = getattr(from_stage, "value", from_stage)
        to_value = getattr(to_stage, "value", to_stage)
        super().__init__(f"Cannot move request from '{from_value}' to '{to_value}'.")
        self.from_stage = from_stage
        self.to_stage = to_stage


class CascadeFailureError(GearGuardError):
    """Equipment deactivation and the Scrap stage write could not be committed together."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    error = "CascadeFailure"

    def __init__(self, request_id: Any, equipment_id: Any, attempts: int, reason: str):
        super().__init__(
            f"Scrapping request {request_id} failed after {attempts} attempt(s); "
            f"equipment {equipment_id} and the request were left unchanged. Reason: {reason}"
        )
        self.request_id = request_id
        self.equipment_id = equipment_id
        self.attempts = attempts

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["request_id"] = str(self.request_id)
        body["equipment_id"] = str(self.equipment_id)
        return body
