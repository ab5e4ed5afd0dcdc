"""
Identities of the resources and the URLs built from them.

A resource is addressed by its type tag (`GroupKind`), its per-instance key
(`ObjectKey`), and optionally by a shard. The URL-building functions here
are pure: they neither validate the identities nor perform any I/O.
Empty segments are passed through as empty; it is the server's job to reject
them if they are not acceptable.
"""
import dataclasses
import urllib.parse
from typing import Any, List, Mapping, Optional, Tuple

API_ROOT = '/api/v1'
LISTING_PATH = f'{API_ROOT}/resources'


@dataclasses.dataclass(frozen=True)
class GroupKind:
    """
    A two-part type tag of a resource; e.g. ``compute.example.com`` & ``port``.
    """
    group: str
    kind: str

    def __repr__(self) -> str:
        return f'{self.kind}.{self.group}'.strip('.')


@dataclasses.dataclass(frozen=True)
class ObjectKey:
    """
    A per-instance address of a resource within its type.
    """
    namespace: str
    name: str

    def __repr__(self) -> str:
        return f'{self.namespace}/{self.name}' if self.namespace else self.name


@dataclasses.dataclass(frozen=True)
class ListOpts:
    """
    A filter for the resource listing. Unset fields impose no constraint.
    """
    group: Optional[str] = None
    kind: Optional[str] = None
    namespace: Optional[str] = None
    name: Optional[str] = None
    shard_id: Optional[str] = None
    pending: bool = False

    def as_params(self) -> Mapping[str, Any]:
        return {
            'resource_group': self.group,
            'kind': self.kind,
            'namespace': self.namespace,
            'name': self.name,
            'shard_id': self.shard_id,
            'pending': self.pending,
        }


@dataclasses.dataclass(frozen=True)
class Cursor:
    """
    A position in the paginated listing. Used internally by the pending queries.
    """
    offset: int = 0
    limit: int = 100

    def next(self) -> "Cursor":
        return dataclasses.replace(self, offset=self.offset + self.limit)

    def as_params(self) -> Mapping[str, Any]:
        return {'limit': self.limit, 'offset': self.offset}


def escape(segment: str) -> str:
    """ Percent-escape a single path segment, including the slashes. """
    return urllib.parse.quote(segment, safe='')


def build_query(params: Optional[Mapping[str, Any]]) -> str:
    """
    Encode only the meaningful values into a query string (without ``?``).

    Empty strings, ``None``, zeroes, and ``False`` are omitted entirely,
    so that an empty filter produces no query at all. ``True`` is ``"true"``.
    The keys are sorted to make the URLs deterministic.
    """
    pairs: List[Tuple[str, str]] = []
    for key, value in sorted((params or {}).items()):
        if value is None or value is False or value == '' or value == 0:
            continue
        pairs.append((key, 'true' if value is True else str(value)))
    return urllib.parse.urlencode(pairs, encoding='utf-8')


def _assemble(path: str, *, params: Optional[Mapping[str, Any]], server: Optional[str]) -> str:
    query = build_query(params)
    url = path + ('?' if query else '') + query
    return url if server is None else server.rstrip('/') + '/' + url.lstrip('/')


def get_url(
        gk: GroupKind,
        key: ObjectKey,
        *,
        subresource: Optional[str] = None,
        params: Optional[Mapping[str, Any]] = None,
        server: Optional[str] = None,
) -> str:
    """
    Build a URL of an individual resource, or of its subresource if specified.

    Params go to the query parameters (``?param1=value1&param2=value2...``),
    unless they are empty. If the server is set, the URL is absolute.
    """
    parts = [
        API_ROOT,
        'groups', escape(gk.group),
        'namespaces', escape(key.namespace),
        'kinds', escape(gk.kind),
        'resources', escape(key.name),
    ]
    if subresource is not None:
        parts.append(escape(subresource))
    return _assemble('/'.join(parts), params=params, server=server)


def get_collection_url(
        gk: GroupKind,
        namespace: str,
        *,
        server: Optional[str] = None,
) -> str:
    """
    Build a URL of a resource collection in a namespace (used for creation).
    """
    parts = [
        API_ROOT,
        'groups', escape(gk.group),
        'namespaces', escape(namespace),
        'kinds', escape(gk.kind),
        'resources',
    ]
    return _assemble('/'.join(parts), params=None, server=server)


def get_listing_url(
        opts: Optional[ListOpts] = None,
        cursor: Optional[Cursor] = None,
        *,
        server: Optional[str] = None,
) -> str:
    """
    Build a URL of the cross-type resource listing with the filter & cursor.
    """
    params = dict(opts.as_params() if opts is not None else {})
    params.update(cursor.as_params() if cursor is not None else {})
    return _assemble(LISTING_PATH, params=params, server=server)
