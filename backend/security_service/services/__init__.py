"""
Security Service Services

Service layer containing the metrics pipeline logic.
Each service has a defined interface (contract) and implementation.
"""

from security_service.services.base import BaseService, ServiceError

__all__ = ["BaseService", "ServiceError"]
