"""
Application layer - Use cases, DTOs, and service wiring.

This layer orchestrates business logic by:
1. Defining request/response DTOs for API contracts
2. Implementing use cases that coordinate core services
3. Wiring infrastructure into core services (ServiceContainer)

Use cases are the only entry point for API handlers.
"""

from src.application.services import ServiceContainer, build_services

__all__ = [
    "ServiceContainer",
    "build_services",
]
