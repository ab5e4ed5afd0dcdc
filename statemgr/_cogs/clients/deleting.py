from typing import Optional

from statemgr._cogs.clients import api, context as ctx
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs
from statemgr._cogs.structs import references


async def delete_obj(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        key: references.ObjectKey,
        shard_id: Optional[str] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> None:
    """
    Delete a resource, optionally restricted to a shard.

    Deleting an absent resource is escalated as `errors.APINotFoundError`,
    so that the callers can tell "deleted now" from "was already absent".
    """
    params = {'shard_id': shard_id} if shard_id else None
    await api.delete(
        url=references.get_url(gk, key, params=params),
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
