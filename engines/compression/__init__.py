"""
Compression Strategy Registry for Compactor

Factory pattern with decorator-based registration.

Usage:
    # In strategy implementation:
    @register_compressor("image")
    class ImageCompressorFactory:
        @staticmethod
        def create(settings: CompressionSettings) -> FileCompressor:
            return ImageCompressor(settings)

    # To get a strategy:
    compressor = get_compressor("image", settings)
"""

from typing import Callable, Dict

from .base import FileCompressor
from .settings import CompressionSettings

# Global registry of compression strategy factories
COMPRESSOR_REGISTRY: Dict[str, Callable[[CompressionSettings], FileCompressor]] = {}


def register_compressor(name: str):
    """
    Decorator to register compression strategy factories.

    Args:
        name: Unique identifier for this strategy

    Returns:
        Decorator function that registers the factory class
    """
    def decorator(factory_class):
        COMPRESSOR_REGISTRY[name] = factory_class.create
        return factory_class
    return decorator


def get_compressor(name: str, settings: CompressionSettings) -> FileCompressor:
    """
    Get a compression strategy instance by name.

    Args:
        name: Strategy identifier (must be registered)
        settings: Settings shared by every strategy of one dispatcher

    Returns:
        Initialized strategy instance

    Raises:
        ValueError: If strategy name is not registered
    """
    if name not in COMPRESSOR_REGISTRY:
        available = ', '.join(sorted(COMPRESSOR_REGISTRY)) if COMPRESSOR_REGISTRY else 'none'
        raise ValueError(
            f"Unknown compressor: '{name}'. "
            f"Available compressors: {available}"
        )
    return COMPRESSOR_REGISTRY[name](settings)


# Import strategies to trigger registration
from . import image, pdf, document  # noqa: E402,F401
