"""
Base Service Interface

All services inherit from this base class.
"""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

InputT = TypeVar("InputT")
OutputT = TypeVar("OutputT")


class BaseService(ABC, Generic[InputT, OutputT]):
    """
    Base class for all services.

    Each service:
    - Has a defined input type
    - Has a defined output type
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Service name for logging."""
        pass

    @abstractmethod
    async def execute(self, input_data: InputT) -> OutputT:
        """
        Execute the service's main function.

        Args:
            input_data: Validated input conforming to InputT schema

        Returns:
            Output conforming to OutputT schema

        Raises:
            ServiceError: If execution fails
        """
        pass


class ServiceError(Exception):
    """Base exception for service errors."""

    status_code: int = 500

    def __init__(self, service_name: str, message: str, details: dict = None):
        self.service_name = service_name
        self.message = message
        self.details = details or {}
        super().__init__(f"[{service_name}] {message}")


class InsufficientDataError(ServiceError):
    """Fewer bars than the indicator period are available."""

    status_code = 400

    def __init__(self, service_name: str, required: int, available: int, label: str = ""):
        self.required = required
        self.available = available
        what = label or "indicator"
        super().__init__(
            service_name,
            f"Cannot compute {what}, not enough data (required {required}, available {available})",
            {"required": required, "available": available},
        )


class InvalidRangeError(ServiceError):
    """Date range or day count rejected as user input."""

    status_code = 400


class UnsupportedMetricFamilyError(ServiceError):
    """Metric family outside the known set."""

    status_code = 422


class NotFoundError(ServiceError):
    """Entity does not exist in its store."""

    status_code = 404


class CollaboratorUnavailableError(ServiceError):
    """A backing store (SQL, holidays, bars) failed."""

    status_code = 503


class ConflictError(ServiceError):
    """Write collides with an existing unique key."""

    status_code = 409
