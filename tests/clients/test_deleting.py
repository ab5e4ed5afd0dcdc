import pytest

from statemgr._cogs.clients.deleting import delete_obj
from statemgr._cogs.clients.errors import APIError, APINotFoundError

RESOURCE_PATH = '/api/v1/groups/compute.salt.x5.ru/namespaces/default/kinds/port/resources/port1'


async def test_deletion(fake_server, context, settings, logger, gk, key):
    route = fake_server.add('delete', RESOURCE_PATH, status=204)
    result = await delete_obj(gk=gk, key=key, context=context, settings=settings, logger=logger)
    assert result is None
    assert route.call_count == 1
    assert route.calls[0].query == {}
    assert route.calls[0].raw == b''
    assert 'content-type' not in route.calls[0].headers


async def test_deletion_in_shard(fake_server, context, settings, logger, gk, key):
    route = fake_server.add('delete', RESOURCE_PATH, status=204)
    await delete_obj(gk=gk, key=key, shard_id='shard1',
                     context=context, settings=settings, logger=logger)
    assert route.calls[0].query == {'shard_id': 'shard1'}


async def test_deletion_with_a_response_body(fake_server, context, settings, logger, gk, key):
    fake_server.add('delete', RESOURCE_PATH, status=200, json={'deleted': True})
    result = await delete_obj(gk=gk, key=key, context=context, settings=settings, logger=logger)
    assert result is None


async def test_deletion_of_an_absent_resource(fake_server, context, settings, logger, gk, key):
    fake_server.add('delete', RESOURCE_PATH, status=404, json={'error': 'resource not found'})
    with pytest.raises(APINotFoundError) as e:
        await delete_obj(gk=gk, key=key, context=context, settings=settings, logger=logger)
    assert e.value.message == 'resource not found'


@pytest.mark.parametrize('status', [400, 401, 403, 409, 500, 666])
async def test_raises_api_errors(fake_server, context, settings, logger, gk, key, status):
    fake_server.add('delete', RESOURCE_PATH, status=status)
    with pytest.raises(APIError) as e:
        await delete_obj(gk=gk, key=key, context=context, settings=settings, logger=logger)
    assert e.value.status == status
