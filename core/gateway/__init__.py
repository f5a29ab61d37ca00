# Path: core/gateway/__init__.py
# Purpose: Package initializer for the image acquisition gateway.
# Layer: core/gateway.
# Details: Exposes the gateway interface, its implementations, providers, and error types.

from .base import ImageGateway, ImageProvider
from .errors import AcquisitionValidationError, GatewayError
from .gateways import HttpGateway, LocalGateway, create_gateway
from .providers import MockProvider, create_provider
from .uploads import MAX_UPLOAD_BYTES, validate_upload

__all__ = [
    "AcquisitionValidationError",
    "GatewayError",
    "HttpGateway",
    "ImageGateway",
    "ImageProvider",
    "LocalGateway",
    "MAX_UPLOAD_BYTES",
    "MockProvider",
    "create_gateway",
    "create_provider",
    "validate_upload",
]
