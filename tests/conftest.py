import asyncio
import logging

import logfire
import pytest
import pytest_asyncio

from radiora.core.config import ControllerSettings

logfire.configure(
    console=False,
    send_to_logfire=False,
    service_name="pytest",
)

USERNAME = "lutron"
PASSWORD = "integration"


class FakeController:
    """
    A minimal RadioRA controller: prompts for credentials, records every
    command it receives and answers level queries from ``levels``.
    """

    def __init__(self, username: str = USERNAME, password: str = PASSWORD, echo: bool = True):
        self.username = username
        self.password = password
        self.echo = echo
        self.levels: dict[int, str] = {}
        self.received: list[str] = []
        self.credentials: list[tuple[str, str]] = []
        self.connections = 0
        self.hang_up_before_password = False
        # Refuse bad credentials by hanging up instead of saying so
        self.reject_silently = False
        self._writers: list[asyncio.StreamWriter] = []
        self.server: asyncio.Server | None = None
        self.port = 0

    async def start(self) -> None:
        self.server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        self.port = self.server.sockets[0].getsockname()[1]

    async def stop(self) -> None:
        for writer in self._writers:
            writer.close()
        if self.server is not None:
            self.server.close()
            await self.server.wait_closed()

    @property
    def writer(self) -> asyncio.StreamWriter:
        return self._writers[-1]

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        self.connections += 1
        self._writers.append(writer)
        try:
            writer.write(b"login: ")
            await writer.drain()
            username = (await reader.readline()).decode().strip()

            if self.hang_up_before_password:
                writer.close()
                return

            writer.write(b"password: ")
            await writer.drain()
            password = (await reader.readline()).decode().strip()
            self.credentials.append((username, password))

            if (username, password) != (self.username, self.password):
                if not self.reject_silently:
                    writer.write(b"login incorrect\r\n")
                    await writer.drain()
                writer.close()
                return

            writer.write(b"\r\nGNET> ")
            await writer.drain()

            while line := await reader.readline():
                command = line.decode().rstrip("\r\n")
                self.received.append(command)
                await self._respond(command, writer)
        except (ConnectionError, OSError):
            pass

    async def _respond(self, command: str, writer: asyncio.StreamWriter) -> None:
        fields = command.split(",")
        if fields[0] == "?OUTPUT" and len(fields) == 2:
            level = self.levels.get(int(fields[1]))
            if level is not None:
                writer.write(f"~OUTPUT,{fields[1]},1,{level}\r\nGNET> ".encode())
        elif fields[0] == "#OUTPUT" and len(fields) >= 4:
            self.levels[int(fields[1])] = f"{float(fields[3]):.2f}"
            if self.echo:
                writer.write(f"~OUTPUT,{fields[1]},1,{self.levels[int(fields[1])]}\r\nGNET> ".encode())
        else:
            writer.write(b"GNET> ")
        await writer.drain()

    async def push(self, line: str) -> None:
        self.writer.write(line.encode())
        await self.writer.drain()

    async def drop(self) -> None:
        """Hang up the current connection."""
        writer = self.writer
        writer.close()
        await writer.wait_closed()


async def wait_until(predicate, timeout: float = 2.0, interval: float = 0.01) -> bool:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            return False
        await asyncio.sleep(interval)
    return True


@pytest.fixture(autouse=True)
def debug_logging(caplog):
    caplog.set_level(logging.DEBUG)
    return caplog


@pytest.fixture
def wait():
    return wait_until


@pytest_asyncio.fixture()
async def controller_factory():
    started: list[FakeController] = []

    async def make(**kwargs) -> FakeController:
        fake = FakeController(**kwargs)
        await fake.start()
        started.append(fake)
        return fake

    yield make
    for fake in started:
        await fake.stop()


@pytest_asyncio.fixture()
async def controller(controller_factory):
    return await controller_factory()


@pytest.fixture
def settings_for():
    def make(controller: FakeController, **overrides) -> ControllerSettings:
        values = dict(
            host="127.0.0.1",
            port=controller.port,
            username=USERNAME,
            password=PASSWORD,
            timeout=0.5,
            set_echo_timeout=0.1,
            reconnect_delay=0.05,
        )
        values.update(overrides)
        return ControllerSettings(**values)
    return make
