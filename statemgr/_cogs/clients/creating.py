from typing import Optional

from statemgr._cogs.clients import api, context as ctx
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs
from statemgr._cogs.structs import bodies, references


async def create_obj(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        namespace: str,
        body: bodies.RawResource,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> bodies.RawResource:
    """
    Create a resource in the namespace's collection of its type.

    Returns the body as stored by the server, i.e. with the server-set fields.
    """
    created_body: bodies.RawResource = await api.post(
        url=references.get_collection_url(gk, namespace),
        payload=body,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return created_body
