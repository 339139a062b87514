"""Interfaces to the audio device and the real-time call transport."""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, AsyncContextManager, Callable, Dict


class PermissionState(str, Enum):
    GRANTED = "granted"
    DENIED = "denied"
    PROMPT = "prompt"


class DeviceAccessError(Exception):
    """
    Failure reported by the media platform.

    ``name`` carries the platform's error name, e.g. ``NotAllowedError`` or
    ``NotFoundError``.
    """

    def __init__(self, name: str, message: str = ""):
        self.name = name
        self.message = message
        super().__init__(f"{name}: {message}" if message else name)


class MediaPlatform(ABC):
    """Abstract access to the local microphone."""

    @abstractmethod
    def has_media_devices(self) -> bool:
        """Whether a media-capture API exists at all."""
        pass

    @abstractmethod
    def is_secure_context(self) -> bool:
        """Whether capture is allowed from the current origin."""
        pass

    @abstractmethod
    async def query_microphone_permission(self) -> PermissionState:
        """Read the current permission without prompting the user."""
        pass

    @abstractmethod
    def open_audio_input(self, device_id: str = "default") -> AsyncContextManager[Any]:
        """
        Acquire the audio input.

        Returns an async context manager; leaving it releases the device.
        Raises DeviceAccessError when the device cannot be opened.
        """
        pass


class TransportConnection(ABC):
    """One real-time call connection created by a CallTransport."""

    @abstractmethod
    def on(self, event_name: str, callback: Callable[..., None]) -> None:
        """Register a callback for a transport event."""
        pass

    @abstractmethod
    async def start(self, payload: Dict[str, Any]) -> None:
        """Join the call described by the payload."""
        pass

    @abstractmethod
    def stop(self) -> None:
        """Leave the call; does not wait for acknowledgement."""
        pass


class CallTransport(ABC):
    """Factory for real-time call connections."""

    @abstractmethod
    def create_connection(self) -> TransportConnection:
        pass
