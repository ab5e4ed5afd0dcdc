from typing import Any, List, Optional

from statemgr._cogs.clients import api, context as ctx, errors
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs
from statemgr._cogs.structs import bodies, references


async def read_obj(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        key: references.ObjectKey,
        shard_id: Optional[str] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> bodies.RawResource:
    """
    Read one specific resource, optionally restricted to a shard.

    An absent resource is escalated as `errors.APINotFoundError`:
    it is the caller's decision whether it is an error or a normal case.
    """
    params = {'shard_id': shard_id} if shard_id else None
    raw: bodies.RawResource = await api.get(
        url=references.get_url(gk, key, params=params),
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return raw


async def list_objs(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        opts: Optional[references.ListOpts] = None,
        cursor: Optional[references.Cursor] = None,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> List[bodies.RawResource]:
    """
    List the resources matching the filter, in the order given by the server.

    Without a cursor, the server's full result is returned in one response.
    With a cursor, only that one page is requested.
    """
    url = references.get_listing_url(opts, cursor)
    rsp = await api.get(
        url=url,
        context=context,
        settings=settings,
        timeout=timeout,
        logger=logger,
    )
    return _as_items(rsp, url=url)


async def list_pending(
        *,
        context: ctx.APIContext,
        settings: configuration.ClientSettings,
        gk: references.GroupKind,
        shard_id: str,
        timeout: Optional[float] = None,
        logger: typedefs.Logger,
) -> List[bodies.RawResource]:
    """
    List all the pending resources of a type in a shard, page by page.

    The pages are requested sequentially, since every next offset depends on
    whether the previous page was full. The listing ends on the first page
    that is shorter than the page size (including an empty page).

    If any page fails, the accumulated items are discarded and the error is
    escalated with the failed page's position. A cancelled task discards them
    the same way. The caller either gets everything, or nothing.
    """
    if settings.pagination.page_size <= 0:
        raise ValueError(f"The page size must be positive, got {settings.pagination.page_size}.")

    opts = references.ListOpts(group=gk.group, kind=gk.kind, shard_id=shard_id, pending=True)
    cursor = references.Cursor(offset=0, limit=settings.pagination.page_size)
    items: List[bodies.RawResource] = []
    while True:
        try:
            page = await list_objs(
                opts=opts,
                cursor=cursor,
                context=context,
                settings=settings,
                timeout=timeout,
                logger=logger,
            )
        except errors.StateManagerError as e:
            logger.error(f"Listing of pending {gk!r} in shard {shard_id!r} failed "
                         f"at offset {cursor.offset}; {len(items)} items are discarded.")
            raise errors.PaginationError(offset=cursor.offset, limit=cursor.limit) from e

        items.extend(page)
        if len(page) < cursor.limit:
            break
        cursor = cursor.next()

    logger.debug(f"Listed {len(items)} pending {gk!r} in shard {shard_id!r}.")
    return items


def _as_items(rsp: Any, *, url: str) -> List[bodies.RawResource]:
    # The listing is a plain JSON array; `null` is what some servers send for an empty result.
    if rsp is None:
        return []
    if not isinstance(rsp, list):
        raise errors.APIDecodeError(f"Expected a list of resources from {url}, "
                                    f"got {type(rsp).__name__}.", status=200)
    return rsp
