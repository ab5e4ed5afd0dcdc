"""
The typed facade of the state manager API.

The provider is generic over the resource class: every body received from
the server is converted into that class, and every object sent is converted
from it. The class also provides the default group & kind for the operations
where only the key is known (get, delete, list pending)::

    async with statemgr.StateManagerProvider(Port, 'http://localhost:8080') as provider:
        port = await provider.create(Port(namespace='default', name='port-1', shard_id='a'))
        port, found = await provider.get(port.get_key())
        pending = await provider.list_pending('a')

The provider holds no mutable state besides the settings & the transport, which
are fixed at construction. It can be used from many concurrent tasks at once.
Every operation is a fresh round trip: nothing is cached between the calls.
"""
import logging
from types import TracebackType
from typing import Any, Generic, List, Optional, Tuple, Type, TypeVar

import aiohttp

from statemgr._cogs.clients import context as ctx, creating, deleting, errors, fetching, updating
from statemgr._cogs.configs import configuration
from statemgr._cogs.helpers import typedefs
from statemgr._cogs.structs import bodies, references
from statemgr._core.engines import loggers

T = TypeVar('T', bound=bodies.Object)

clients_logger = logging.getLogger('statemgr.clients')


class StateManagerProvider(Generic[T]):

    def __init__(
            self,
            resource_cls: Type[T],
            server: str,
            *,
            session: Optional[aiohttp.ClientSession] = None,
            settings: Optional[configuration.ClientSettings] = None,
            logger: Optional[typedefs.Logger] = None,
    ) -> None:
        super().__init__()
        self.resource_cls = resource_cls
        self.settings = settings if settings is not None else configuration.ClientSettings()
        self.context = ctx.APIContext(server, session=session, settings=self.settings)
        self.logger: typedefs.Logger = logger if logger is not None else clients_logger
        self.objects_logger: Optional[typedefs.Logger] = logger

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} {self.resource_cls.__name__} @ {self.context.server}>'

    async def close(self) -> None:
        await self.context.close()

    async def __aenter__(self) -> "StateManagerProvider[T]":
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc_val: Optional[BaseException],
            exc_tb: Optional[TracebackType],
    ) -> None:
        await self.close()

    async def get(
            self,
            key: references.ObjectKey,
            *,
            gk: Optional[references.GroupKind] = None,
            shard_id: Optional[str] = None,
            timeout: Optional[float] = None,
    ) -> Tuple[Optional[T], bool]:
        """
        Fetch a resource by its key, and report if it was found.

        Only the absence of the resource is reported as ``(None, False)``.
        All other errors are escalated as usual.
        """
        gk = gk if gk is not None else self.resource_cls.get_gk()
        try:
            raw = await fetching.read_obj(
                gk=gk,
                key=key,
                shard_id=shard_id,
                timeout=timeout,
                context=self.context,
                settings=self.settings,
                logger=self.logger,
            )
        except errors.APINotFoundError:
            return None, False
        return self._decode(raw), True

    async def list(
            self,
            opts: Optional[references.ListOpts] = None,
            *,
            timeout: Optional[float] = None,
    ) -> List[T]:
        """
        List all the resources matching the filter, as returned by the server.

        An empty or absent filter lists all the resources visible to the client.
        """
        items = await fetching.list_objs(
            opts=opts,
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return [self._decode(raw) for raw in items]

    async def list_pending(
            self,
            shard_id: str,
            *,
            gk: Optional[references.GroupKind] = None,
            timeout: Optional[float] = None,
    ) -> List[T]:
        """
        List all the pending resources of the shard, through all the pages.

        The timeout, if set, applies to every page individually.
        """
        gk = gk if gk is not None else self.resource_cls.get_gk()
        items = await fetching.list_pending(
            gk=gk,
            shard_id=shard_id,
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        return [self._decode(raw) for raw in items]

    async def create(self, obj: T, *, timeout: Optional[float] = None) -> T:
        """
        Create a resource, and return it as stored (e.g. with the timestamps).
        """
        gk = self._get_gk(obj)
        raw = await creating.create_obj(
            gk=gk,
            namespace=obj.get_key().namespace,
            body=obj.to_dict(),
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        created = self._decode(raw)
        loggers.ObjectLogger(body=created, gk=gk, logger=self.objects_logger).debug("Created.")
        return created

    async def update(self, obj: T, *, timeout: Optional[float] = None) -> T:
        """
        Replace a resource with the object's content, addressed by its identity.
        """
        gk = self._get_gk(obj)
        raw = await updating.update_obj(
            gk=gk,
            key=obj.get_key(),
            body=obj.to_dict(),
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        updated = self._decode(raw)
        loggers.ObjectLogger(body=updated, gk=gk, logger=self.objects_logger).debug("Updated.")
        return updated

    async def update_status(self, obj: T, *, timeout: Optional[float] = None) -> T:
        """
        Store the object's status, and return the resource as recomputed by the server.
        """
        gk = self._get_gk(obj)
        raw = await updating.update_status(
            gk=gk,
            key=obj.get_key(),
            body=obj.to_dict(),
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        updated = self._decode(raw)
        loggers.ObjectLogger(body=updated, gk=gk, logger=self.objects_logger).debug(
            "Updated the status.")
        return updated

    async def delete(
            self,
            key: references.ObjectKey,
            *,
            gk: Optional[references.GroupKind] = None,
            shard_id: Optional[str] = None,
            timeout: Optional[float] = None,
    ) -> None:
        """
        Delete a resource by its key.

        If the resource is absent, `errors.APINotFoundError` is raised.
        The callers that treat the deletion as idempotent should suppress it.
        """
        gk = gk if gk is not None else self.resource_cls.get_gk()
        await deleting.delete_obj(
            gk=gk,
            key=key,
            shard_id=shard_id,
            timeout=timeout,
            context=self.context,
            settings=self.settings,
            logger=self.logger,
        )
        loggers.ObjectLogger(gk=gk, key=key, shard_id=shard_id,
                             logger=self.objects_logger).debug("Deleted.")

    def _get_gk(self, obj: T) -> references.GroupKind:
        # Generic resources know their type tag only per instance, not per class.
        return obj.get_own_gk()

    def _decode(self, raw: Any) -> T:
        try:
            return self.resource_cls.from_dict(raw)
        except (TypeError, ValueError, KeyError) as e:
            raise errors.APIDecodeError(f"Cannot decode {self.resource_cls.__name__}: {e}",
                                        status=200) from e
