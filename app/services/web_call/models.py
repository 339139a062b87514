"""Web call session models."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Union


class CallStatus(str, Enum):
    """Lifecycle of a single real-time call connection."""

    IDLE = "idle"
    CONNECTING = "connecting"
    ACTIVE = "active"
    ENDED = "ended"  # terminal
    FAILED = "failed"  # terminal

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CallState:
    """Observable call state; ``reason`` is set only for FAILED."""

    status: CallStatus
    reason: Optional[str] = None

    @classmethod
    def idle(cls) -> "CallState":
        return cls(CallStatus.IDLE)

    @classmethod
    def connecting(cls) -> "CallState":
        return cls(CallStatus.CONNECTING)

    @classmethod
    def active(cls) -> "CallState":
        return cls(CallStatus.ACTIVE)

    @classmethod
    def ended(cls) -> "CallState":
        return cls(CallStatus.ENDED)

    @classmethod
    def failed(cls, reason: str) -> "CallState":
        return cls(CallStatus.FAILED, reason)

    @property
    def is_live(self) -> bool:
        return self.status in (CallStatus.CONNECTING, CallStatus.ACTIVE)

    @property
    def is_terminal(self) -> bool:
        return self.status in (CallStatus.ENDED, CallStatus.FAILED)

    def __str__(self) -> str:
        if self.reason is not None:
            return f"{self.status}({self.reason})"
        return str(self.status)


@dataclass(frozen=True)
class CallSession:
    """A created web call. The access token may start one connection only."""

    call_id: str
    access_token: str = field(repr=False)


@dataclass(frozen=True)
class Capability:
    """Proof that the microphone could be opened for this attempt."""

    device_id: str = "default"


# Transport events. The transport SDK names them call_connecting, call_started,
# call_ended and error.

@dataclass(frozen=True)
class CallConnecting:
    name = "call_connecting"


@dataclass(frozen=True)
class CallStarted:
    name = "call_started"


@dataclass(frozen=True)
class CallEnded:
    name = "call_ended"


@dataclass(frozen=True)
class CallErrored:
    message: str = "An error occurred during the call"
    name = "error"


TransportEvent = Union[CallConnecting, CallStarted, CallEnded, CallErrored]


@dataclass
class StartCallOptions:
    """Options handed to the transport's start()."""

    access_token: str = field(repr=False)
    capture_device_id: str = "default"
    enable_vad: bool = True
    vad_threshold: float = 0.5
    vad_auto_threshold: bool = True
    vad_auto_threshold_bias: float = 0

    def to_payload(self) -> Dict[str, Any]:
        """Build the SDK's startCall payload."""
        return {
            "accessToken": self.access_token,
            "captureDeviceId": self.capture_device_id,
            "enableVAD": self.enable_vad,
            "vadOptions": {
                "vadThreshold": self.vad_threshold,
                "vadAutoThreshold": self.vad_auto_threshold,
                "vadAutoThresholdBias": self.vad_auto_threshold_bias,
            },
        }
