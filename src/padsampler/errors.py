"""Error kinds raised or reported by the sampler core."""


class SamplerError(Exception):
    """Base class for every recoverable sampler failure."""


class NetworkError(SamplerError):
    """A byte stream could not be opened or read."""


class DecodeError(SamplerError):
    """Audio data could not be decoded into a buffer."""


class DeviceError(SamplerError):
    """The capture device is unavailable or access was denied."""


class CaptureBusyError(SamplerError):
    """A capture session is already running."""


class EmptyExportError(SamplerError):
    """There are no loaded buffers to export."""

    def __init__(self, message: str = "No sounds to save. Load or record some sounds first."):
        super().__init__(message)


class UploadError(SamplerError):
    """The preset service rejected or failed an upload."""
