import asyncio
import dataclasses
import itertools
import json
import logging
import urllib.parse
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple, Union

import aiohttp.test_utils
import aiohttp.web
import pytest

from statemgr._cogs.clients.context import APIContext
from statemgr._cogs.configs.configuration import ClientSettings
from statemgr._cogs.structs.bodies import Resource
from statemgr._cogs.structs.references import GroupKind, ObjectKey
from statemgr._core.providers import StateManagerProvider


def pytest_configure(config):
    # Warnings from our own code should fail the tests. Use `-Wignore` to explicitly disable it.
    config.addinivalue_line('filterwarnings', 'error::DeprecationWarning:statemgr')


@dataclasses.dataclass
class Port(Resource):
    """ A sample resource type as used by the virtual machines' networking. """
    GROUP = 'compute.salt.x5.ru'
    KIND = 'port'


@pytest.fixture()
def port_cls():
    return Port


@pytest.fixture()
def gk():
    return GroupKind(group='compute.salt.x5.ru', kind='port')


@pytest.fixture()
def key():
    return ObjectKey(namespace='default', name='port1')


@pytest.fixture()
def body():
    return {
        'resource_group': 'compute.salt.x5.ru',
        'kind': 'port',
        'namespace': 'default',
        'name': 'port1',
        'shard_id': 'shard1',
        'labels': {'project_id': '1234567'},
        'annotations': {'revision': 'new'},
        'spec': {'flavor': 'm1.small', 'disk_size': 200, 'fip': '192.168.0.14'},
        'status': {},
    }


@pytest.fixture()
def settings():
    return ClientSettings()


@pytest.fixture()
def logger():
    return logging.getLogger('statemgr.tests')


#
# A fake API server: it serves the responses as added by the tests,
# and remembers the requests, so that they could be asserted later.
# No external calls must be made under any circumstances.
#

Handler = Callable[[aiohttp.web.Request], Union[aiohttp.web.StreamResponse,
                                               Awaitable[aiohttp.web.StreamResponse]]]


@dataclasses.dataclass
class RecordedRequest:
    method: str
    path: str  # raw, i.e. percent-encoded
    query: Mapping[str, str]
    headers: Mapping[str, str]  # lower-cased names
    raw: bytes
    data: Any  # parsed json or text


@dataclasses.dataclass
class Route:
    method: str
    path: str
    query: Optional[Mapping[str, str]]
    handler: Handler
    repeat: Optional[int]  # None means infinitely
    calls: List[RecordedRequest] = dataclasses.field(default_factory=list)

    @property
    def called(self) -> bool:
        return bool(self.calls)

    @property
    def call_count(self) -> int:
        return len(self.calls)


class FakeServer:
    """
    A fake API server with the responses pre-defined or computed by the tests.

    Sample usage::

        async def test_me(fake_server, context):
            route = fake_server.add('get', '/api/v1/resources', json=[])
            await do_something()
            assert route.call_count == 1
            assert route.calls[0].query == {}
    """

    def __init__(self) -> None:
        super().__init__()
        self.url = ''
        self.routes: List[Route] = []
        self.requests: List[RecordedRequest] = []

    def add(
            self,
            method: str,
            path: str,
            *,
            query: Optional[Mapping[str, str]] = None,
            status: int = 200,
            json: Any = None,
            text: Optional[str] = None,
            handler: Optional[Handler] = None,
            repeat: Optional[int] = 1,
    ) -> Route:
        if handler is None:
            handler = self._make_handler(status=status, json_data=json, text=text)
        route = Route(method=method.upper(), path=path.split('?')[0], query=query,
                      handler=handler, repeat=repeat)
        self.routes.append(route)
        return route

    @staticmethod
    def _make_handler(*, status: int, json_data: Any, text: Optional[str]) -> Handler:
        def handler(request: aiohttp.web.Request) -> aiohttp.web.Response:
            if text is not None:
                return aiohttp.web.Response(status=status, text=text)
            elif json_data is not None:
                return aiohttp.web.json_response(json_data, status=status)
            else:
                return aiohttp.web.Response(status=status)
        return handler

    async def handle(self, request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        raw = await request.read()
        try:
            data = json.loads(raw) if raw else None
        except ValueError:
            data = raw.decode('utf-8', errors='replace')
        recorded = RecordedRequest(
            method=request.method,
            path=request.raw_path.split('?')[0],
            query=dict(request.rel_url.query),
            headers={name.lower(): value for name, value in request.headers.items()},
            raw=raw,
            data=data,
        )
        self.requests.append(recorded)

        for route in self.routes:
            if route.method != recorded.method or route.path != recorded.path:
                continue
            if route.query is not None and dict(route.query) != recorded.query:
                continue
            if route.repeat is not None and route.call_count >= route.repeat:
                continue
            route.calls.append(recorded)
            response = route.handler(request)
            if asyncio.iscoroutine(response):
                response = await response
            return response

        return aiohttp.web.Response(status=599, text=f"Unexpected request: {request.method} "
                                                     f"{request.raw_path}")


@pytest.fixture()
async def fake_server():
    server = FakeServer()
    app = aiohttp.web.Application()
    app.router.add_route('*', '/{tail:.*}', server.handle)
    test_server = aiohttp.test_utils.TestServer(app)
    await test_server.start_server()
    server.url = str(test_server.make_url('/')).rstrip('/')
    try:
        yield server
    finally:
        await test_server.close()


@pytest.fixture()
async def context(fake_server, settings):
    async with APIContext(fake_server.url, settings=settings) as context:
        yield context


@pytest.fixture()
async def provider(fake_server, settings):
    async with StateManagerProvider(Port, fake_server.url, settings=settings) as provider:
        yield provider


#
# A fake stateful state manager for the end-to-end scenarios of the provider.
# It implements the API as the real server does, but in memory.
#

StoreKey = Tuple[str, str, str, str]  # group, namespace, kind, name


class FakeStore:

    def __init__(self) -> None:
        super().__init__()
        self.items: Dict[StoreKey, Dict[str, Any]] = {}
        self.pending: Dict[StoreKey, bool] = {}
        self.clock = itertools.count(1)

    def _now(self) -> str:
        seconds = next(self.clock)
        return f'2024-01-01T00:{seconds // 60:02d}:{seconds % 60:02d}Z'

    async def handle(self, request: aiohttp.web.Request) -> aiohttp.web.StreamResponse:
        segments = [urllib.parse.unquote(s) for s in request.raw_path.split('?')[0].split('/')]
        if segments[1:] == ['api', 'v1', 'resources'] and request.method == 'GET':
            return self.list(request)

        # ['', 'api', 'v1', 'groups', G, 'namespaces', NS, 'kinds', K, 'resources', (NAME, (status))]
        if len(segments) < 10 or segments[1:4] != ['api', 'v1', 'groups']:
            return aiohttp.web.json_response({'error': 'no such endpoint'}, status=400)
        group, namespace, kind = segments[4], segments[6], segments[8]
        name = segments[10] if len(segments) > 10 else None
        subresource = segments[11] if len(segments) > 11 else None
        body = await request.json() if request.can_read_body else None

        if request.method == 'POST' and name is None:
            return self.create(group, namespace, kind, body)
        elif name is None:
            return aiohttp.web.json_response({'error': 'no such endpoint'}, status=400)

        skey = (group, namespace, kind, name)
        if skey not in self.items:
            return aiohttp.web.json_response({'error': 'resource not found'}, status=404)

        shard_id = request.rel_url.query.get('shard_id')
        if shard_id and self.items[skey].get('shard_id') != shard_id:
            return aiohttp.web.json_response({'error': 'resource not found'}, status=404)

        if request.method == 'GET':
            return aiohttp.web.json_response(self.items[skey])
        elif request.method == 'DELETE':
            del self.items[skey]
            del self.pending[skey]
            return aiohttp.web.Response(status=204)
        elif request.method == 'PUT' and subresource == 'status':
            self.items[skey] = dict(self.items[skey], status=body.get('status', {}),
                                    updated_at=self._now())
            self.pending[skey] = False
            return aiohttp.web.json_response(self.items[skey])
        elif request.method == 'PUT':
            stored = self.items[skey]
            self.items[skey] = dict(body, status=stored['status'],
                                    created_at=stored['created_at'], updated_at=self._now())
            self.pending[skey] = True
            return aiohttp.web.json_response(self.items[skey])
        else:
            return aiohttp.web.json_response({'error': 'method not allowed'}, status=400)

    def create(self, group: str, namespace: str, kind: str, body: Any) -> aiohttp.web.Response:
        if not isinstance(body, dict) or not body.get('name'):
            return aiohttp.web.json_response({'error': 'name is required'}, status=400)
        skey = (group, namespace, kind, body['name'])
        if skey in self.items:
            return aiohttp.web.json_response({'error': 'resource already exists'}, status=409)
        now = self._now()
        self.items[skey] = dict(body, resource_group=group, namespace=namespace, kind=kind,
                                created_at=now, updated_at=now)
        self.pending[skey] = True
        return aiohttp.web.json_response(self.items[skey], status=201)

    def list(self, request: aiohttp.web.Request) -> aiohttp.web.Response:
        query = request.rel_url.query
        selected = [
            item for skey, item in self.items.items()
            if query.get('resource_group', item['resource_group']) == item['resource_group']
            if query.get('kind', item['kind']) == item['kind']
            if query.get('namespace', item['namespace']) == item['namespace']
            if query.get('name', item['name']) == item['name']
            if query.get('shard_id', item.get('shard_id')) == item.get('shard_id')
            if query.get('pending') != 'true' or self.pending[skey]
        ]
        offset = int(query.get('offset', 0))
        limit = int(query['limit']) if 'limit' in query else None
        page = selected[offset:offset + limit] if limit is not None else selected[offset:]
        return aiohttp.web.json_response(page)


@pytest.fixture()
def fake_store():
    return FakeStore()


@pytest.fixture()
async def store_provider(fake_store, settings):
    app = aiohttp.web.Application()
    app.router.add_route('*', '/{tail:.*}', fake_store.handle)
    test_server = aiohttp.test_utils.TestServer(app)
    await test_server.start_server()
    url = str(test_server.make_url('/'))
    try:
        async with StateManagerProvider(Port, url, settings=settings) as provider:
            yield provider
    finally:
        await test_server.close()
