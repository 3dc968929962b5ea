import asyncio
import re
from typing import Callable, Optional

import logfire

from radiora.utils.logging import get_logger, mask_secret

from .types import LINE_END, RE_ANY_PROMPT, RE_COMMAND_PROMPT

CHUNK_SIZE = 1024
CONNECT_TIMEOUT = 10.0

logger = get_logger(__name__)


class LineFramer:
    """
    Splits the controller byte stream into lines.

    Complete lines end in CRLF. A trailing fragment is held until the
    rest of it arrives, unless it is a prompt: prompts are written
    without a terminator and are released as soon as they are seen.
    When the controller writes a command prompt and then a status push in
    the same read, the prompt is split off the front of the line.
    """

    def __init__(
        self,
        prompt_pattern: re.Pattern = RE_ANY_PROMPT,
        leading_prompt: re.Pattern = RE_COMMAND_PROMPT,
        encoding: str = "ascii",
    ):
        self.prompt_pattern = prompt_pattern
        self.leading_prompt = leading_prompt
        self.encoding = encoding
        self._buffer = ""

    def feed(self, data: bytes) -> list[str]:
        # Some controllers prefix the first prompt with a NUL
        text = data.decode(self.encoding, errors="replace").replace("\0", "")
        self._buffer += text

        parts = self._buffer.split(LINE_END)
        self._buffer = parts.pop()
        if self._buffer and self.prompt_pattern.match(self._buffer):
            parts.append(self._buffer)
            self._buffer = ""

        lines = []
        for part in parts:
            lines.extend(self._split_prompts(part))
        return lines

    def _split_prompts(self, line: str) -> list[str]:
        lines = []
        while True:
            match = self.leading_prompt.match(line)
            if match is None or match.end() == len(line):
                break
            lines.append(match.group(0))
            line = line[match.end():]
        lines.append(line)
        return lines

    @property
    def pending(self) -> str:
        return self._buffer

    def reset(self) -> None:
        self._buffer = ""


class LineTransport:
    """
    Owns one stream connection to the controller. Incoming lines are
    passed to ``on_line`` in arrival order from a single reader task;
    ``on_close`` is called once if the controller ends the stream.
    """

    def __init__(
        self,
        host: str,
        port: int,
        on_line: Callable[[str], None],
        on_close: Callable[[], None],
        secret: Optional[str] = None,
    ):
        self.host = host
        self.port = port
        self.on_line = on_line
        self.on_close = on_close
        self.secret = secret
        self.framer = LineFramer()

        self._reader: asyncio.StreamReader | None = None
        self._writer: asyncio.StreamWriter | None = None
        self._read_task: asyncio.Task | None = None
        self._closing = False

    @property
    def connected(self) -> bool:
        return self._writer is not None and not self._writer.is_closing()

    @logfire.instrument("Open Transport")
    async def open(self) -> None:
        """Connect to the controller. Raises OSError or TimeoutError on failure."""
        logger.info(f"Connecting to {self.host}:{self.port}")
        self._closing = False
        self.framer.reset()
        self._reader, self._writer = await asyncio.wait_for(
            asyncio.open_connection(self.host, self.port),
            timeout=CONNECT_TIMEOUT,
        )
        self._read_task = asyncio.create_task(
            self._read_loop(self._reader),
            name=f"RadioRA-Reader-{self.host}",
        )

    async def _read_loop(self, reader: asyncio.StreamReader) -> None:
        try:
            while True:
                chunk = await reader.read(CHUNK_SIZE)
                if not chunk:
                    break
                for line in self.framer.feed(chunk):
                    logger.trace(f"<< {line}")
                    try:
                        self.on_line(line)
                    except Exception as e:
                        logger.exception(f"Error handling line {line!r}: {e}")
        except asyncio.CancelledError:
            raise
        except (ConnectionError, OSError) as e:
            logger.warning(f"Error reading from controller: {e}")

        if self._closing:
            return
        self._release_writer()
        self.on_close()

    def write(self, data: str) -> None:
        if self._writer is None or self._writer.is_closing():
            raise ConnectionError("Not connected to RadioRA controller.")
        logger.debug(f">> {mask_secret(data.rstrip(), self.secret)}")
        self._writer.write(data.encode("ascii"))

    def _release_writer(self) -> None:
        writer, self._writer = self._writer, None
        if writer is not None:
            writer.close()

    async def close(self) -> None:
        self._closing = True
        task, self._read_task = self._read_task, None
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)

        writer, self._writer = self._writer, None
        if writer is not None:
            try:
                writer.close()
                await writer.wait_closed()
            except (ConnectionError, OSError) as e:
                logger.warning(f"Error closing connection: {e}")
