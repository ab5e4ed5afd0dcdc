"""
All configuration flags, options, settings to fine-tune the client.

All settings are grouped semantically just for convenience
(instead of a flat mega-object with all the values in it).

Some of the settings are optional, some are not (but all of them have
reasonable defaults). The settings object is created once per provider
and is not modified by the library afterwards; modifying it from outside
while requests are in flight affects only the requests started later.
"""
import dataclasses
from typing import Optional

DEFAULT_USER_AGENT = 'state-mgr-sdk/1.0'


@dataclasses.dataclass
class NetworkingSettings:

    request_timeout: Optional[float] = 10.0
    """
    A timeout for the whole API request, from connecting to reading the body.

    Measured in seconds. Set to ``None`` to disable (and rely on the caller's
    own deadlines, such as ``asyncio.timeout()`` or task cancellation).
    Individual calls can override it with their own ``timeout=`` argument.
    """

    connect_timeout: Optional[float] = None
    """
    A timeout for establishing a connection to the API server.
    If ``None``, only the whole-request timeout is applied.
    """


@dataclasses.dataclass
class PaginationSettings:

    page_size: int = 100
    """
    How many resources are requested per page when listing the pending ones.

    The pages are requested sequentially until a page shorter than this size
    arrives. The callers never see the pages: they get the full list only.
    """


@dataclasses.dataclass
class ClientIdentitySettings:

    user_agent: str = DEFAULT_USER_AGENT
    """
    The ``User-Agent`` header sent with every request to self-identify.
    """


@dataclasses.dataclass
class ClientSettings:
    networking: NetworkingSettings = dataclasses.field(default_factory=NetworkingSettings)
    pagination: PaginationSettings = dataclasses.field(default_factory=PaginationSettings)
    client: ClientIdentitySettings = dataclasses.field(default_factory=ClientIdentitySettings)
