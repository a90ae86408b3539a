"""
Base module interface with service injection support
"""

from abc import ABC, abstractmethod
from typing import Dict, Any
import argparse
import logging


class ModuleInterface(ABC):
    """Base interface for all manager modules."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__)
        self._services: Dict[str, Any] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        """Module name (used for command routing)."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Module description for help text."""
        pass

    @property
    def required_services(self) -> tuple:
        """Names of the services this module requires."""
        return ()

    @property
    @abstractmethod
    def commands(self) -> Dict[str, str]:
        """Dictionary of command_flag: description for this module."""
        pass

    @abstractmethod
    def add_arguments(self, parser: argparse.ArgumentParser) -> None:
        """Add module-specific arguments to argument parser."""
        pass

    @abstractmethod
    def execute(self, args: argparse.Namespace, manager) -> None:
        """Execute module command with parsed arguments and manager instance."""
        pass

    def inject_services(self, services: Dict[str, Any]) -> None:
        """Inject required services into the module.

        Args:
            services: Dictionary of service instances

        Raises:
            ValueError: If a required service is missing
        """
        for service_name in self.required_services:
            if service_name not in services:
                raise ValueError(f"Required service '{service_name}' not provided")
            self._services[service_name] = services[service_name]

    def get_service(self, service_name: str) -> Any:
        """Get an injected service by name.

        Raises:
            KeyError: If service not found
        """
        if service_name not in self._services:
            raise KeyError(f"Service '{service_name}' not found. Available: {list(self._services.keys())}")
        return self._services[service_name]
