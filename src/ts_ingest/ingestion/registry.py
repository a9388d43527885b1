"""
Format registry for import formats.

Provides registration and discovery of ImportFormat implementations.
"""

import logging
from typing import Type

from .base import ImportFormat
from .exceptions import FormatNotFoundError

logger = logging.getLogger(__name__)


class FormatRegistry:
    """
    Registry for import formats.

    Usage:
        # Register using decorator
        @FormatRegistry.register('csv')
        class CSVFormat(ImportFormat):
            ...

        # Get format instance
        import_format = FormatRegistry.get_format('csv')

        # List all formats
        formats = FormatRegistry.list_formats()
    """

    _formats: dict[str, Type[ImportFormat]] = {}

    @classmethod
    def register(cls, format_name: str):
        """
        Decorator to register a format class.

        Args:
            format_name: Format identifier for registry lookup

        Returns:
            Decorator function
        """

        def decorator(format_class: Type[ImportFormat]) -> Type[ImportFormat]:
            cls.register_format(format_name, format_class)
            return format_class

        return decorator

    @classmethod
    def register_format(
        cls, format_name: str, format_class: Type[ImportFormat]
    ) -> None:
        """
        Register a format class.

        Args:
            format_name: Format identifier (e.g., 'csv')
            format_class: Class implementing ImportFormat

        Raises:
            TypeError: If format_class doesn't inherit from ImportFormat
        """
        if not issubclass(format_class, ImportFormat):
            raise TypeError(
                f"Format class must inherit from ImportFormat, "
                f"got {format_class.__name__}"
            )

        format_name = format_name.lower()

        if format_name in cls._formats:
            logger.warning(f"Overwriting existing format '{format_name}'")

        cls._formats[format_name] = format_class
        logger.debug(f"Registered import format: {format_name}")

    @classmethod
    def get_format(cls, format_name: str) -> ImportFormat:
        """
        Get a format instance by name.

        Raises:
            FormatNotFoundError: If format is not registered
        """
        format_name = format_name.lower()

        if format_name not in cls._formats:
            raise FormatNotFoundError(
                format_name=format_name,
                available_formats=list(cls._formats.keys()),
            )

        return cls._formats[format_name]()

    @classmethod
    def list_formats(cls) -> list[str]:
        """Sorted list of registered format names."""
        return sorted(cls._formats.keys())

    @classmethod
    def is_format_registered(cls, format_name: str) -> bool:
        """Check if a format is registered."""
        return format_name.lower() in cls._formats

    @classmethod
    def clear(cls) -> None:
        """
        Clear all registered formats.

        Primarily used for testing to reset registry state.
        """
        cls._formats.clear()
        logger.debug("Cleared import format registry")


# =============================================================================
# Convenience Functions
# =============================================================================


def get_format(format_name: str) -> ImportFormat:
    """
    Get a format instance by name.

    Convenience function wrapping FormatRegistry.get_format().

    Raises:
        FormatNotFoundError: If format is not registered
    """
    return FormatRegistry.get_format(format_name)


def list_formats() -> list[str]:
    """List all registered format names."""
    return FormatRegistry.list_formats()
