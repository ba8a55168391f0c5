# agenda/errors.py
"""
Failures raised inside the scheduling core.

Every business failure is a SchedulingError; the engine turns them into
structured results at its public boundary. StorageUnavailable is the only
one that escapes as a fault.
"""


class SchedulingError(Exception):
    code = "SchedulingError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ReferenceNotFound(SchedulingError):
    code = "ReferenceNotFound"

    def __init__(self, entity: str):
        super().__init__(f"{entity} not found")
        self.entity = entity


class TenantMismatch(SchedulingError):
    code = "TenantMismatch"

    def __init__(self, entity: str):
        super().__init__(f"{entity} belongs to another tenant")
        self.entity = entity


class NotFound(SchedulingError):
    code = "NotFound"

    def __init__(self, message: str = "Appointment not found"):
        super().__init__(message)


class SchedulingConflict(SchedulingError):
    code = "SchedulingConflict"

    def __init__(self, message: str = "Time slot already taken for this professional"):
        super().__init__(message)


class IllegalTransition(SchedulingError):
    code = "IllegalTransition"

    def __init__(self, from_status: str, to_status: str):
        super().__init__(f"Cannot change status from '{from_status}' to '{to_status}'")
        self.from_status = from_status
        self.to_status = to_status


class CheckoutNotAuthorized(SchedulingError):
    code = "CheckoutNotAuthorized"

    def __init__(self, message: str = "Barbers are not allowed to check out appointments in this shop"):
        super().__init__(message)


class ProfessionalNotAllowed(SchedulingError):
    code = "ProfessionalNotAllowed"

    def __init__(self, message: str = "Barbers can only manage their own appointments"):
        super().__init__(message)


class StorageUnavailable(Exception):
    code = "StorageUnavailable"

    def __init__(self, message: str = "Storage is unavailable, try again"):
        super().__init__(message)
        self.message = message
