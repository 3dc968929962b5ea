import asyncio
import logging

from radiora.lutron.session import RadioRASession

logger = logging.getLogger(__name__)


class SessionRegistry:
    """
    Sessions by name, owned by whatever composes them. Nothing in the
    engine looks sessions up globally.
    """
    def __init__(self):
        self._sessions: dict[str, RadioRASession] = {}

    def register(self, name: str, session: RadioRASession) -> None:
        if name in self._sessions:
            raise ValueError(f"Session {name} already registered")
        self._sessions[name] = session
        logger.debug(f"Session registered: {name}")

    def unregister(self, name: str) -> RadioRASession | None:
        return self._sessions.pop(name, None)

    def get(self, name: str) -> RadioRASession | None:
        return self._sessions.get(name)

    def names(self) -> list[str]:
        return list(self._sessions)

    def __contains__(self, name: str) -> bool:
        return name in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    async def close_all(self) -> None:
        sessions = list(self._sessions.values())
        self._sessions.clear()
        results = await asyncio.gather(*(s.disconnect() for s in sessions), return_exceptions=True)
        for session, result in zip(sessions, results):
            if isinstance(result, Exception):
                logger.warning(f"Error closing session {session.name}: {result}")
