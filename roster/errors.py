class RosterError(Exception):
    """Base class for errors reported back to the caller."""
    status_code = 400

    def __init__(self, message: str = None):
        self.message = message or self.__class__.__doc__
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {'error': self.message}


class ValidationError(RosterError):
    """Invalid or missing field."""
    status_code = 400


class DuplicateNameError(RosterError):
    """Name already confirmed."""
    status_code = 409

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Name already confirmed: {name}")


class CapacityExceededError(RosterError):
    """All slots are taken."""
    status_code = 409

    def __init__(self, capacity: int):
        self.capacity = capacity
        super().__init__(f"All {capacity} slots are taken")


class NotFoundError(RosterError):
    """Not found."""
    status_code = 404


class TenantInactiveError(RosterError):
    """Group subscription is not active."""
    status_code = 402


class DeliveryError(RosterError):
    """Message delivery failed."""
    status_code = 502


class DeliveryNotConfiguredError(DeliveryError):
    """WhatsApp delivery is not set up for this group."""
    status_code = 409
