"""
Dependency injection container.

This module provides a container for dependency injection, making it easy to
create and manage service instances.
"""

import logging
from typing import Any, Optional

from sqlalchemy.orm import Session

from talent_backend.domain.questionnaire import FieldSetRegistry
from talent_backend.infrastructure.config.settings import Settings, settings
from talent_backend.infrastructure.persistence.profile_repository import (
    ProfileRepository,
)
from talent_backend.services.profile_reconciler import (
    ProfileReconciler,
    build_field_registry,
)
from talent_backend.utils.structured_logger import EventSink, log_event

logger = logging.getLogger(__name__)


class Container:
    """
    Dependency injection container.

    Holds process-wide singletons (field-set registry, event sink) and builds
    request-scoped services around a SQLAlchemy session.
    """

    def __init__(self, app_settings: Optional[Settings] = None):
        self._settings = app_settings or settings
        self._services = {}

    def register_service(self, name: str, service_instance: Any):
        """
        Register a service instance with the container.

        Args:
            name: Name to register the service under
            service_instance: Service instance to register
        """
        self._services[name] = service_instance
        logger.debug(f"Registered service: {name}")

    def get_service(self, name: str) -> Any:
        """
        Get a service instance by name.

        Raises:
            KeyError: If the service is not registered
        """
        if name not in self._services:
            raise KeyError(f"Service not registered: {name}")
        return self._services[name]

    def has_service(self, name: str) -> bool:
        return name in self._services

    def get_field_registry(self) -> FieldSetRegistry:
        """Get or create the questionnaire field-set registry singleton."""
        service_name = "field_registry"
        if not self.has_service(service_name):
            self.register_service(service_name, build_field_registry())
        return self.get_service(service_name)

    def get_event_sink(self) -> EventSink:
        """Get the registered event sink, defaulting to structured logging."""
        service_name = "event_sink"
        if not self.has_service(service_name):
            self.register_service(service_name, log_event)
        return self.get_service(service_name)

    def get_profile_reconciler(self, session: Session) -> ProfileReconciler:
        """
        Build a profile reconciler bound to the given session.

        Args:
            session: Request-scoped SQLAlchemy session

        Returns:
            ProfileReconciler instance
        """
        return ProfileReconciler(
            ProfileRepository(session),
            field_sets=self.get_field_registry(),
            default_namespace=self._settings.profile_default_namespace,
            fallback_namespace=self._settings.profile_fallback_namespace,
            default_role=self._settings.profile_default_role,
            default_talent_type=self._settings.profile_default_talent_type,
            event_sink=self.get_event_sink(),
        )


_container: Optional[Container] = None


def get_container() -> Container:
    """Process-wide container instance."""
    global _container
    if _container is None:
        _container = Container()
    return _container
