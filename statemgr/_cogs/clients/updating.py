from typing import Optional

from statemgr._cogs.clients import api, context as ctx
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs
from statemgr._cogs.structs import bodies, references


async def update_obj(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        key: references.ObjectKey,
        body: bodies.RawResource,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> bodies.RawResource:
    """
    Replace a resource with the full body, except for its status.

    The identity in the URL is the one of the resource to replace,
    so it must be the same identity which was used to create the resource.
    """
    updated_body: bodies.RawResource = await api.put(
        url=references.get_url(gk, key),
        payload=body,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return updated_body


async def update_status(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        key: references.ObjectKey,
        body: bodies.RawResource,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> bodies.RawResource:
    """
    Replace the status of a resource via its status subresource.

    The full body is sent, but only the status is taken by the server.
    The returned body has the server-recomputed metadata (e.g. timestamps).
    """
    updated_body: bodies.RawResource = await api.put(
        url=references.get_url(gk, key, subresource='status'),
        payload=body,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return updated_body
