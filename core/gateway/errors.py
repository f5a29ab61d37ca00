# Path: core/gateway/errors.py
# Purpose: Define the error taxonomy of the image acquisition boundary.
# Layer: core/gateway.
# Details: Validation errors are raised before any I/O; gateway errors carry a user-facing message.


class AcquisitionValidationError(ValueError):
    """Input rejected before any I/O happened (empty prompt, wrong file type, oversized file)."""


class GatewayError(RuntimeError):
    """Acquisition failed in transport or upstream; the message is shown to the user as-is."""


__all__ = ["AcquisitionValidationError", "GatewayError"]
