import asyncio
import json
from typing import Any, Dict, Optional, Tuple

import aiohttp

from statemgr._cogs.clients import context as ctx, errors
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> Tuple[int, bytes]:
    """
    Perform one request and return the status with the fully read body.

    There are no retries: exactly one attempt is made. The response is always
    released before returning, so nothing is left open regardless of the result.
    The body is neither checked nor parsed here: see `errors.parse_response`.
    """
    url = context.get_url(url)
    what = f"{method.upper()} {url}"

    # Fail fast on unserialisable data, before anything goes to the network.
    data: Optional[bytes] = None
    if payload is not None:
        try:
            data = json.dumps(payload, allow_nan=False).encode('utf-8')
        except (TypeError, ValueError) as e:
            raise errors.APIEncodeError(f"Cannot serialise the payload for {what}: {e}") from e

    headers: Dict[str, str] = {
        'Accept': 'application/json',
        'User-Agent': settings.client.user_agent,
    }
    if data is not None:
        headers['Content-Type'] = 'application/json'

    client_timeout = aiohttp.ClientTimeout(
        total=timeout if timeout is not None else settings.networking.request_timeout,
        sock_connect=settings.networking.connect_timeout,
    )

    try:
        logger.debug(f"Request: {what}")
        async with context.session.request(
            method=method.upper(),
            url=url,
            data=data,
            headers=headers,
            timeout=client_timeout,
        ) as response:
            status = response.status
            raw = await response.read()
    except asyncio.TimeoutError as e:
        logger.error(f"Request timed out: {what}")
        raise errors.APITimeoutError(f"Request timed out: {what}") from e
    except aiohttp.ClientError as e:
        logger.error(f"Request failed: {what} -> {e!r}")
        raise errors.APITransportError(f"Request failed: {what}: {e}") from e

    logger.debug(f"Response: {what} -> {status}")
    return status, raw


async def get(
        url: str,  # relative to the server/api root.
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> Any:
    status, raw = await request(
        method='get',
        url=url,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return errors.parse_response(status, raw)


async def post(
        url: str,  # relative to the server/api root.
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> Any:
    status, raw = await request(
        method='post',
        url=url,
        payload=payload,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return errors.parse_response(status, raw)


async def put(
        url: str,  # relative to the server/api root.
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        payload: Optional[object] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> Any:
    status, raw = await request(
        method='put',
        url=url,
        payload=payload,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return errors.parse_response(status, raw)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> None:
    status, raw = await request(
        method='delete',
        url=url,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    errors.parse_response(status, raw, expect_body=False)
