from types import TracebackType
from typing import Optional, Type

import aiohttp

from statemgr._cogs.configs import configuration


class APIContext:
    """
    A container for an aiohttp session and the server's base URL.

    The session can be injected by the caller: then, it is used as is and is
    never closed by the context, since it is owned by the caller. Otherwise,
    a session is created on first use (it must be created in a running loop)
    and is closed together with the context.

    Nothing in the context changes after the construction, except for the lazy
    creation of the owned session. It can be shared by many concurrent tasks.
    """

    # Contextual information for URL building.
    server: str

    def __init__(
            self,
            server: str,
            *,
            session: Optional[aiohttp.ClientSession] = None,
            settings: Optional[configuration.ClientSettings] = None,
    ) -> None:
        super().__init__()
        self.server = server.rstrip('/')
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self._session = session
        self._owned = session is None

    @property
    def session(self) -> aiohttp.ClientSession:
        if self._session is None or (self._owned and self._session.closed):
            self._session = self.make_aiohttp_session()
        return self._session

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    def make_aiohttp_session(self) -> aiohttp.ClientSession:
        timeout = aiohttp.ClientTimeout(
            total=self.settings.networking.request_timeout,
            sock_connect=self.settings.networking.connect_timeout,
        )
        return aiohttp.ClientSession(timeout=timeout)

    def get_url(self, url: str) -> str:
        if '://' in url:
            return url
        return self.server + '/' + url.lstrip('/')

    async def close(self) -> None:
        # Injected sessions belong to the caller, who closes them on their own.
        if self._owned and self._session is not None:
            await self._session.close()

    async def __aenter__(self) -> "APIContext":
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()
