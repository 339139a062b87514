"""Microphone permission probe."""
import logging

from app.core.errors import ApiUnavailable, DeviceNotFound, InsecureContext, PermissionDenied
from app.services.web_call.models import Capability
from app.services.web_call.platform import DeviceAccessError, MediaPlatform, PermissionState

logger = logging.getLogger(__name__)

PERMISSION_ERROR_NAMES = {"NotAllowedError", "PermissionDeniedError"}
NOT_FOUND_ERROR_NAMES = {"NotFoundError", "DevicesNotFoundError"}


def map_device_error(error: DeviceAccessError) -> Exception:
    """Translate a platform error name into the dashboard error taxonomy."""
    if error.name in PERMISSION_ERROR_NAMES:
        return PermissionDenied()
    if error.name in NOT_FOUND_ERROR_NAMES:
        return DeviceNotFound()
    return ApiUnavailable(error.message or None)


async def probe_microphone(platform: MediaPlatform, device_id: str = "default") -> Capability:
    """
    Check that the microphone can be opened, then release it.

    A permission already reported as denied fails straight away, so the user
    is never shown a prompt that cannot succeed.
    """
    if not platform.has_media_devices():
        raise ApiUnavailable("Media devices API not available in this browser")

    if not platform.is_secure_context():
        raise InsecureContext()

    try:
        permission = await platform.query_microphone_permission()
    except DeviceAccessError as e:
        logger.error(f"[MICROPHONE] Permission query failed: {e}")
        raise map_device_error(e) from e

    if permission == PermissionState.DENIED:
        logger.info("[MICROPHONE] Permission already denied, not prompting")
        raise PermissionDenied(
            "Microphone access is blocked. Please allow access in your browser settings."
        )

    try:
        async with platform.open_audio_input(device_id):
            logger.debug("[MICROPHONE] Probe acquired audio input")
    except DeviceAccessError as e:
        logger.error(f"[MICROPHONE] Error accessing microphone: {e}")
        raise map_device_error(e) from e

    return Capability(device_id=device_id)
