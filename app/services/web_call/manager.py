"""Web call session manager."""
import asyncio
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Set

from app.core.errors import InvalidAgent, SessionStateError
from app.core.logging import mask_secret
from app.services.retell.client import RetellClient
from app.services.web_call.microphone import probe_microphone
from app.services.web_call.models import (
    CallConnecting,
    CallEnded,
    CallErrored,
    CallSession,
    CallStarted,
    CallState,
    CallStatus,
    Capability,
    StartCallOptions,
    TransportEvent,
)
from app.services.web_call.platform import CallTransport, MediaPlatform, TransportConnection

logger = logging.getLogger(__name__)

CALL_LIVE_NOTICE = "call is live"
CALL_OVER_NOTICE = "call is over"


class WebCallSessionManager:
    """
    Drives one web call at a time: microphone probe, call creation and the
    real-time connection.

    All transport events go through ``_dispatch``, which is the only place the
    state changes after a connection has been started.
    """

    def __init__(
        self,
        client: RetellClient,
        platform: MediaPlatform,
        transport: CallTransport,
        on_state_change: Optional[Callable[[CallState], None]] = None,
        on_notice: Optional[Callable[[str], None]] = None,
        capture_device_id: str = "default",
    ):
        self.client = client
        self.platform = platform
        self.transport = transport
        self.on_state_change = on_state_change
        self.on_notice = on_notice
        self.capture_device_id = capture_device_id

        self._state = CallState.idle()
        self.history: List[CallState] = [self._state]
        self._connection: Optional[TransportConnection] = None
        self._terminal: Optional[asyncio.Future] = None
        self._starting = False
        self._capability: Optional[Capability] = None
        self._used_tokens: Set[str] = set()

    @property
    def state(self) -> CallState:
        return self._state

    @property
    def has_connection(self) -> bool:
        return self._connection is not None

    async def request_microphone_access(self) -> Capability:
        """Probe the microphone; a success arms the next start_session."""
        self._capability = None
        capability = await probe_microphone(self.platform, self.capture_device_id)
        self._capability = capability
        return capability

    async def create_session(self, agent_id: str) -> CallSession:
        """Create a web call for an agent."""
        if not agent_id or not agent_id.strip():
            raise InvalidAgent()
        web_call = await self.client.create_web_call(agent_id)
        logger.info(f"[WEB CALL] Web call created - call_id: {web_call.call_id}")
        return CallSession(call_id=web_call.call_id, access_token=web_call.access_token)

    async def start_session(
        self, session: CallSession, options: Optional[StartCallOptions] = None
    ) -> CallState:
        """
        Start the real-time connection and wait for it to end.

        Returns the terminal state (ENDED or FAILED).
        """
        if self._starting or self._state.is_live:
            raise SessionStateError("A call is already in progress")
        if self._capability is None:
            raise SessionStateError("Microphone access is required to start the call.")
        if session.access_token in self._used_tokens:
            raise SessionStateError("Access token has already been used. Create a new web call.")

        capability = self._capability
        self._capability = None
        self._used_tokens.add(session.access_token)
        self._starting = True
        try:
            self._teardown()

            if options is None:
                options = StartCallOptions(
                    access_token=session.access_token,
                    capture_device_id=capability.device_id,
                )
            else:
                options = replace(
                    options,
                    access_token=session.access_token,
                    capture_device_id=capability.device_id,
                )

            terminal = asyncio.get_running_loop().create_future()
            self._terminal = terminal
            connection = self.transport.create_connection()
            self._register(connection)
            self._connection = connection
            self._transition(CallState.connecting())

            logger.info(
                f"[WEB CALL] Starting call {session.call_id} with access token "
                f"{mask_secret(session.access_token)}"
            )
            try:
                await connection.start(options.to_payload())
            except asyncio.CancelledError:
                logger.info("[WEB CALL] Call start cancelled")
                self.end_session()
                raise
            except Exception as e:
                logger.error(f"[WEB CALL] Error initializing call: {e}", exc_info=True)
                self._dispatch(connection, CallErrored(str(e) or "Failed to start the call"))
        finally:
            self._starting = False

        try:
            return await terminal
        except asyncio.CancelledError:
            self.end_session()
            raise

    def end_session(self) -> None:
        """Stop the current connection. Does nothing when none is attached."""
        if self._connection is None:
            return
        logger.info("[WEB CALL] Ending call...")
        self._teardown()
        self._finish(CallState.ended(), CALL_OVER_NOTICE)

    async def place_call(self, agent_id: str) -> CallState:
        """Create a web call, check the microphone and run the call to completion."""
        session = await self.create_session(agent_id)
        await self.request_microphone_access()
        return await self.start_session(session)

    def _register(self, connection: TransportConnection) -> None:
        connection.on(CallStarted.name, lambda *args: self._dispatch(connection, CallStarted()))
        connection.on(
            CallConnecting.name, lambda *args: self._dispatch(connection, CallConnecting())
        )
        connection.on(CallEnded.name, lambda *args: self._dispatch(connection, CallEnded()))
        connection.on(
            CallErrored.name,
            lambda error=None, *args: self._dispatch(connection, CallErrored(_error_message(error))),
        )

    def _dispatch(self, connection: TransportConnection, event: TransportEvent) -> None:
        if connection is not self._connection:
            logger.debug(f"[WEB CALL] Ignoring {event.name} from a discarded connection")
            return

        status = self._state.status
        if isinstance(event, CallConnecting):
            if status == CallStatus.CONNECTING:
                self._transition(CallState.connecting())
        elif isinstance(event, CallStarted):
            if status == CallStatus.CONNECTING:
                logger.info("[WEB CALL] Call started successfully")
                self._transition(CallState.active())
                self._notify(CALL_LIVE_NOTICE)
        elif isinstance(event, CallEnded):
            if self._state.is_live:
                logger.info("[WEB CALL] Call ended")
                self._connection = None
                self._finish(CallState.ended(), CALL_OVER_NOTICE)
        elif isinstance(event, CallErrored):
            if self._state.is_live:
                logger.error(f"[WEB CALL] Call error: {event.message}")
                self._teardown()
                self._finish(CallState.failed(event.message), CALL_OVER_NOTICE)

    def _teardown(self) -> None:
        connection, self._connection = self._connection, None
        if connection is not None:
            connection.stop()

    def _finish(self, state: CallState, notice: str) -> None:
        self._transition(state)
        self._notify(notice)
        terminal, self._terminal = self._terminal, None
        if terminal is not None and not terminal.done():
            terminal.set_result(state)

    def _transition(self, state: CallState) -> None:
        logger.debug(f"[WEB CALL] {self._state} -> {state}")
        self._state = state
        self.history.append(state)
        if self.on_state_change is not None:
            self.on_state_change(state)

    def _notify(self, notice: str) -> None:
        if self.on_notice is not None:
            self.on_notice(notice)


def _error_message(error) -> str:
    if error is None:
        return CallErrored().message
    message = getattr(error, "message", None)
    if message:
        return str(message)
    return str(error) or CallErrored().message
