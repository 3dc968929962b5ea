import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

import logfire

from radiora.core.config import ControllerSettings
from radiora.utils.eventbus import CallbackT, EventBus, EventT, SubscriptionToken

from .cache import StatusCache
from .commands import OutputCommand, SetLevelOptions
from .commands.base import terminate
from .login import LoginHandshake, LoginState
from .parser import StatusParser
from .transport import LineTransport
from .types import (
    RE_COMMAND_PROMPT,
    RE_LOGIN_PROMPT,
    RE_LOGIN_REJECTED,
    SessionEvents,
    StatusEvent,
    status_key,
)
from .watchdog import Watchdog, WatchdogContext, watchdog

LevelCallbackT = Callable[..., Any]
TransportFactoryT = Callable[..., LineTransport]


@dataclass
class _SessionState:
    ready: bool = False
    authenticated: bool = False
    # Set when the command prompt follows a login, cleared if the
    # controller refuses the credentials or hangs up before the prompt
    has_authenticated: bool = False
    banner_seen: bool = False
    stopping: bool = False
    transport: Optional[LineTransport] = None
    command_queue: deque[str] = field(default_factory=deque)
    cache: StatusCache = field(default_factory=StatusCache)


def _as_device_id(device_id: Any) -> int:
    if isinstance(device_id, bool):
        raise TypeError(f"Invalid device id: {device_id!r}")
    return int(device_id)


class RadioRASession:
    """
    One authenticated, self-healing connection to a RadioRA controller.

    Commands issued before the login completes are queued and written in
    order once it does. Replies carry no request id, so a query or set is
    matched to the next status push for the same output.
    """

    def __init__(
        self,
        settings: ControllerSettings,
        *,
        context: Optional[WatchdogContext] = None,
        transport_factory: TransportFactoryT = LineTransport,
    ):
        self.settings = settings
        self.logger = logging.getLogger(self.__class__.__name__)
        self.context = context or WatchdogContext(self.logger)
        self.ready_event = asyncio.Event()

        self._transport_factory = transport_factory
        self._state = _SessionState()
        self._bus = EventBus()
        self._parser = StatusParser(self._state.cache, self._bus)
        self._login = LoginHandshake(
            settings.username,
            settings.password,
            self._write,
            self._on_authenticated,
        )
        self._reconnect_task: Optional[asyncio.Task] = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def name(self) -> str:
        return self.settings.name

    @property
    def ready(self) -> bool:
        return self._state.ready

    @property
    def authenticated(self) -> bool:
        return self._state.authenticated

    @property
    def login_state(self) -> LoginState:
        return self._login.state

    @property
    def logged_in(self) -> bool:
        """True once the controller has shown its command prompt after a login."""
        return self._state.has_authenticated

    @property
    def cache(self) -> StatusCache:
        return self._state.cache

    @property
    def queued_commands(self) -> list[str]:
        return list(self._state.command_queue)

    @property
    def timeout(self) -> float:
        return self.settings.timeout

    # Connection lifecycle

    @logfire.instrument("Connect")
    async def connect(self) -> bool:
        """
        Open the connection and start the login sequence. Returns False if
        the controller could not be reached.
        """
        state = self._state
        state.stopping = False
        state.banner_seen = False
        self._login.reset()

        transport = self._transport_factory(
            self.settings.host,
            self.settings.port,
            self._handle_line,
            self._on_transport_closed,
            secret=self.settings.password,
        )
        try:
            await transport.open()
        except (OSError, asyncio.TimeoutError) as e:
            self.logger.error(f"Connection to {self.settings.host}:{self.settings.port} failed: {e}")
            if state.has_authenticated and not state.stopping:
                self._reconnect_later()
            return False

        if state.stopping:
            # disconnect() ran while the connection was being opened
            await transport.close()
            return False

        state.transport = transport
        self.logger.info("Connected to RadioRA controller")
        return True

    @logfire.instrument("Disconnect")
    async def disconnect(self) -> None:
        state = self._state
        state.stopping = True
        self._set_ready(False)

        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            if self._reconnect_task is not asyncio.current_task():
                await asyncio.gather(self._reconnect_task, return_exceptions=True)
        self._reconnect_task = None

        transport, state.transport = state.transport, None
        if transport is not None:
            await transport.close()
        self.logger.info("Disconnected from RadioRA controller")

    async def wait_ready(self, timeout: Optional[float] = None) -> bool:
        try:
            await asyncio.wait_for(self.ready_event.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False

    def _set_ready(self, ready: bool) -> None:
        self._state.ready = self._state.authenticated = ready
        if ready:
            self.ready_event.set()
        else:
            self.ready_event.clear()

    def _reconnect_later(self) -> None:
        if self._reconnect_task and not self._reconnect_task.done():
            return

        async def reconnect() -> None:
            await asyncio.sleep(self.settings.reconnect_delay)
            # A failed attempt schedules the next one
            self._reconnect_task = None
            if not self._state.stopping:
                await self.connect()

        self._reconnect_task = asyncio.create_task(
            reconnect(),
            name="RadioRA-Reconnect",
        )

    def _on_transport_closed(self) -> None:
        state = self._state
        state.transport = None
        self._set_ready(False)
        if state.stopping:
            return

        if not state.banner_seen:
            state.has_authenticated = False

        if state.has_authenticated:
            self.logger.warning("Lost connection to RadioRA controller, reconnecting")
            self._bus.emit(SessionEvents.CONNECTION_LOST, True)
            self._reconnect_later()
        else:
            self.logger.warning("Connection to RadioRA controller ended")

    # Inbound

    def _handle_line(self, line: str) -> None:
        if self._state.stopping:
            return
        if not self._login.authenticated:
            self._login.handle_line(line)
            return

        state = self._state
        if not state.banner_seen:
            if RE_COMMAND_PROMPT.search(line):
                state.banner_seen = True
                state.has_authenticated = True
            elif RE_LOGIN_REJECTED.search(line) or RE_LOGIN_PROMPT.match(line):
                self._on_login_rejected()
                return

        self._parser.handle_line(line)

    def _on_authenticated(self) -> None:
        self._set_ready(True)
        self.logger.info("Logged into RadioRA controller")
        self._flush_queue()
        self._bus.emit(SessionEvents.LOGGED_IN, True)

    def _on_login_rejected(self) -> None:
        state = self._state
        self.logger.error("RadioRA controller rejected the login credentials")
        state.has_authenticated = False
        state.stopping = True
        self._set_ready(False)

        transport, state.transport = state.transport, None

        async def abort() -> None:
            if transport is not None:
                await transport.close()
            self.logger.warning("Connection to RadioRA controller ended")

        task = asyncio.create_task(abort(), name="RadioRA-Abort")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # Outbound

    def _write(self, data: str) -> None:
        transport = self._state.transport
        if transport is None:
            raise ConnectionError("Not connected to RadioRA controller.")
        transport.write(data)

    def _flush_queue(self) -> None:
        queue = self._state.command_queue
        while queue:
            command = queue.popleft()
            try:
                self._write(command)
            except ConnectionError:
                queue.appendleft(command)
                self.logger.warning(f"Connection lost while flushing, {len(queue)} command(s) kept")
                return

    @logfire.instrument("Send Command")
    def send_command(self, command: str) -> None:
        to_send = terminate(command)
        if self._state.ready:
            try:
                self._write(to_send)
                return
            except ConnectionError as e:
                self.logger.warning(f"Write failed, queueing command: {e}")
        self.logger.debug("Controller not ready, adding command to queue..")
        self._state.command_queue.append(to_send)

    # Operations

    def get_position(
        self,
        device_id: int,
        callback: LevelCallbackT,
        *,
        use_cache: bool = True,
    ) -> Optional[SubscriptionToken]:
        """
        Deliver the level of ``device_id`` to ``callback``.

        Answered from the cache when a level is known and no query is
        outstanding. Otherwise the callback waits for the next status
        push for the output; only one wire query is outstanding per
        output, later callers share its reply.
        """
        device_id = _as_device_id(device_id)
        cache = self._state.cache
        status = cache.entry(device_id)
        if use_cache and not status.in_flight and status.level is not None:
            self.logger.debug(f"Returning {status.level} from cache")
            callback(float(status.level))
            return None

        def result(event: StatusEvent) -> None:
            callback(event.value)

        token = self._bus.subscribe(status_key(device_id), result, once=True)
        self._request_status(device_id)
        return token

    def set_position(
        self,
        device_id: int,
        level: float,
        callback: Optional[LevelCallbackT] = None,
        options: Optional[SetLevelOptions] = None,
    ) -> SubscriptionToken:
        """
        Set the level of ``device_id``. ``callback`` receives the status
        push that follows. If the controller does not echo one within
        ``set_echo_timeout`` the level is queried explicitly.
        """
        device_id = _as_device_id(device_id)
        timers: list[asyncio.TimerHandle] = []

        def result(event: StatusEvent) -> None:
            for timer in timers:
                timer.cancel()
            if callback is not None:
                callback(event)

        token = self._bus.subscribe(status_key(device_id), result, once=True)
        self.send_command(OutputCommand.set_zone_level(device_id, level, options).execute())

        loop = asyncio.get_running_loop()
        timers.append(loop.call_later(self.settings.set_echo_timeout, self._on_echo_missing, device_id, token))
        return token

    def release_query(self, device_id: int, token: Optional[SubscriptionToken]) -> None:
        """Drop a waiter that gave up. The last waiter out clears the in-flight flag."""
        if token is None or not self._bus.unsubscribe(token):
            return
        device_id = _as_device_id(device_id)
        if self._bus.listener_count(status_key(device_id)) == 0:
            self._state.cache.end_query(device_id)

    def _request_status(self, device_id: int) -> None:
        if self._state.cache.begin_query(device_id):
            self.send_command(OutputCommand.get_zone_level(device_id).query())
        else:
            self.logger.debug(f"Waiting for existing query for status of {device_id}")

    def _on_echo_missing(self, device_id: int, token: SubscriptionToken) -> None:
        if not self._bus.is_subscribed(token):
            return
        self.logger.debug(f"No status echo for {device_id}, querying level")
        self._request_status(device_id)

    # Watched operations

    def watch_query(
        self,
        device_id: int,
        callback: LevelCallbackT,
        timeout: Optional[float] = None,
        use_cache: bool = True,
    ) -> Watchdog:
        """``get_position`` with a watchdog; ``callback()`` is called with no level on timeout."""
        tokens: list[SubscriptionToken] = []
        guard = watchdog(
            f"getPosition {device_id}",
            timeout if timeout is not None else self.timeout,
            self.context,
            callback,
            on_timeout=lambda: self.release_query(device_id, tokens[0] if tokens else None),
        )
        token = self.get_position(device_id, guard, use_cache=use_cache)
        if token is not None:
            tokens.append(token)
        return guard

    def watch_set(
        self,
        device_id: int,
        level: float,
        callback: LevelCallbackT,
        options: Optional[SetLevelOptions] = None,
        timeout: Optional[float] = None,
    ) -> Watchdog:
        """``set_position`` with a watchdog; ``callback()`` is called with no event on timeout."""
        tokens: list[SubscriptionToken] = []
        guard = watchdog(
            f"setPosition {device_id}",
            timeout if timeout is not None else self.timeout,
            self.context,
            callback,
            on_timeout=lambda: self.release_query(device_id, tokens[0] if tokens else None),
        )
        tokens.append(self.set_position(device_id, level, guard, options))
        return guard

    async def query_level(
        self,
        device_id: int,
        timeout: Optional[float] = None,
        use_cache: bool = True,
    ) -> Optional[float]:
        """Await the level of ``device_id``; None if the controller did not answer in time."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def complete(level: Optional[float] = None) -> None:
            if not future.done():
                future.set_result(level)

        self.watch_query(device_id, complete, timeout=timeout, use_cache=use_cache)
        return await future

    async def set_level(
        self,
        device_id: int,
        level: float,
        options: Optional[SetLevelOptions] = None,
        timeout: Optional[float] = None,
    ) -> Optional[StatusEvent]:
        """Await the status push confirming a level change; None on timeout."""
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def complete(event: Optional[StatusEvent] = None) -> None:
            if not future.done():
                future.set_result(event)

        self.watch_set(device_id, level, complete, options=options, timeout=timeout)
        return await future

    # Events

    def subscribe(self, event: EventT, callback: CallbackT) -> SubscriptionToken:
        """
        Subscribe to session events (SessionEvents members), status pushes
        for one output (``status_key(id)``) or everything (ALL_EVENTS).
        """
        return self._bus.subscribe(event, callback)

    def unsubscribe(self, token: SubscriptionToken) -> None:
        self._bus.unsubscribe(token)

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.settings.host}:{self.settings.port} state={self.login_state} ready={self.ready}>"
