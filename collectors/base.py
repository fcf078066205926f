"""Base collector class and interfaces"""
from abc import ABC, abstractmethod
from typing import Any


class BaseCollector(ABC):
    """Base class for metric collectors writing into a registry"""

    def __init__(self, config=None, name: str = "", help_text: str = ""):
        self.config = config
        self._name = name
        self._help_text = help_text

    @abstractmethod
    def collect(self) -> Any:
        """Run one collection pass"""
        pass

    @property
    def name(self) -> str:
        """Collector name for identification"""
        return self._name

    @property
    def help_text(self) -> str:
        """Help text describing what this collector does"""
        return self._help_text or f"{self.name} metrics collector"

    def cleanup(self):
        """Cleanup resources"""
        pass
