# CUI // SP-CTI
"""Configuration provider base class and scheme registry.

A configuration provider turns a location (an opaque identifier) into a flat
mapping of JDBC connection properties. Providers register under a scheme
name ("ocidbtools") and are looked up with find_provider(); each lookup
returns an instance bound to the factory the caller passes in.
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Type

logger = logging.getLogger("ocidbtools.configuration")

_REGISTRY: Dict[str, Type["ConfigurationProvider"]] = {}


class ConfigurationProvider(ABC):
    """Abstract base class for configuration providers."""

    #: Scheme name used in config-<type>:// URLs.
    TYPE: str = ""

    def __init__(self, factory):
        self._factory = factory

    @property
    def provider_type(self) -> str:
        return self.TYPE

    @abstractmethod
    def get_connection_properties(self, location: str,
                                  options: Optional[Dict[str, str]] = None
                                  ) -> Dict[str, str]:
        """Resolve location into connection properties.

        Args:
            location: Provider-specific identifier (e.g. a connection OCID).
            options: Per-call options parsed from the location URL.

        Returns:
            Non-empty property mapping.
        """


def register_provider(cls: Type[ConfigurationProvider]) -> Type[ConfigurationProvider]:
    """Class decorator registering a provider under cls.TYPE."""
    if not cls.TYPE:
        raise ValueError(f"{cls.__name__} must define TYPE")
    _REGISTRY[cls.TYPE.lower()] = cls
    return cls


def find_provider(provider_type: str, factory) -> Optional[ConfigurationProvider]:
    """Return a provider bound to factory, or None for an unknown scheme."""
    cls = _REGISTRY.get((provider_type or "").lower())
    if cls is None:
        logger.debug("No configuration provider registered for '%s'", provider_type)
        return None
    return cls(factory)


def available_providers() -> List[str]:
    return sorted(_REGISTRY)
