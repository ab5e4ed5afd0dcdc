"""
All the structures coming from/to the state manager API.

The wire format is a flat JSON object with the identity fields at the top
level, the labels & annotations as string-to-string mappings, two server-set
timestamps, and arbitrary ``spec`` & ``status`` sub-structures::

    {
        "resource_group": "compute.example.com",
        "kind": "port",
        "namespace": "default",
        "name": "port-1",
        "shard_id": "shard-a",
        "labels": {"project_id": "1234567"},
        "annotations": {"revision": "new"},
        "created_at": "2024-01-01T00:00:00Z",
        "updated_at": "2024-01-01T00:00:00Z",
        "spec": {...},
        "status": {...}
    }

The client is generic over the resource classes: anything satisfying
the `Object` protocol can be listed, fetched, created, updated, and deleted.
`Resource` is the reference implementation, which keeps ``spec`` & ``status``
as plain dicts. Typed payloads can be built by overriding the conversions::

    @dataclasses.dataclass
    class Port(statemgr.Resource):
        GROUP = 'compute.example.com'
        KIND = 'port'

        @property
        def flavor(self) -> str:
            return self.spec.get('flavor', '')

The server-side timestamps are kept exactly as the server sent them, so that
they are sent back unchanged; the parsed ``datetime`` values are available
via `Resource.created` & `Resource.updated`.
"""
import copy
import dataclasses
import datetime
from typing import Any, ClassVar, Dict, Mapping, MutableMapping, Optional, Type, TypeVar, cast

import iso8601
from typing_extensions import Protocol, TypedDict

from statemgr._cogs.structs import references

Labels = Mapping[str, str]
Annotations = Mapping[str, str]

_IDENTITY_FIELDS = ('resource_group', 'kind', 'namespace', 'name', 'shard_id')
_KNOWN_FIELDS = _IDENTITY_FIELDS + ('labels', 'annotations', 'created_at', 'updated_at',
                                    'spec', 'status')

_O = TypeVar('_O', bound='Object')
_R = TypeVar('_R', bound='Resource')


class RawResource(TypedDict, total=False):
    resource_group: str
    kind: str
    namespace: str
    name: str
    shard_id: str
    labels: Dict[str, str]
    annotations: Dict[str, str]
    created_at: str
    updated_at: str
    spec: Dict[str, Any]
    status: Dict[str, Any]


class Object(Protocol):
    """
    The capabilities the client needs from a resource class.

    The type tag is class-level (the same for all instances of a class),
    but an instance can narrow it (`get_own_gk`) if the class serves many types.
    The key & shard are per-instance. The conversions must be lossless enough
    for the server to accept the results of `to_dict` for updates.
    """

    @classmethod
    def get_gk(cls) -> references.GroupKind: ...

    def get_own_gk(self) -> references.GroupKind: ...

    def get_key(self) -> references.ObjectKey: ...

    def get_shard_id(self) -> str: ...

    def deepcopy(self: _O) -> _O: ...

    def to_dict(self) -> RawResource: ...

    @classmethod
    def from_dict(cls: Type[_O], raw: Mapping[str, Any]) -> _O: ...


@dataclasses.dataclass
class Resource:
    """
    A generic resource: identity, labels/annotations, opaque spec & status.

    Subclasses set `GROUP` & `KIND` to declare their type tag. If they do not,
    the base class serves any type, and the tag is taken from the instance
    (which is only possible where an instance exists, e.g. for creation).
    """

    GROUP: ClassVar[str] = ''
    KIND: ClassVar[str] = ''

    name: str = ''
    namespace: str = ''
    resource_group: str = ''
    kind: str = ''
    shard_id: str = ''
    labels: Dict[str, str] = dataclasses.field(default_factory=dict)
    annotations: Dict[str, str] = dataclasses.field(default_factory=dict)
    spec: Dict[str, Any] = dataclasses.field(default_factory=dict)
    status: Dict[str, Any] = dataclasses.field(default_factory=dict)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    extras: Dict[str, Any] = dataclasses.field(default_factory=dict)
    """ Unrecognised top-level fields, kept for sending them back as they were. """

    def __post_init__(self) -> None:
        self.resource_group = self.resource_group or self.GROUP
        self.kind = self.kind or self.KIND

    @classmethod
    def get_gk(cls) -> references.GroupKind:
        return references.GroupKind(group=cls.GROUP, kind=cls.KIND)

    def get_own_gk(self) -> references.GroupKind:
        """ The type tag as stored in the instance, falling back to the class'. """
        return references.GroupKind(group=self.resource_group or self.GROUP,
                                    kind=self.kind or self.KIND)

    def get_key(self) -> references.ObjectKey:
        return references.ObjectKey(namespace=self.namespace, name=self.name)

    def get_shard_id(self) -> str:
        return self.shard_id

    def deepcopy(self: _R) -> _R:
        return copy.deepcopy(self)

    @property
    def created(self) -> Optional[datetime.datetime]:
        return parse_timestamp(self.created_at)

    @property
    def updated(self) -> Optional[datetime.datetime]:
        return parse_timestamp(self.updated_at)

    def to_dict(self) -> RawResource:
        raw: Dict[str, Any] = dict(self.extras)
        raw.update(
            resource_group=self.resource_group,
            kind=self.kind,
            namespace=self.namespace,
            name=self.name,
            shard_id=self.shard_id,
            labels=dict(self.labels),
            annotations=dict(self.annotations),
            spec=copy.deepcopy(self.spec),
            status=copy.deepcopy(self.status),
        )
        if self.created_at is not None:
            raw['created_at'] = self.created_at
        if self.updated_at is not None:
            raw['updated_at'] = self.updated_at
        return cast(RawResource, raw)

    @classmethod
    def from_dict(cls: Type[_R], raw: Mapping[str, Any]) -> _R:
        if not isinstance(raw, Mapping):
            raise TypeError(f"A resource must be a JSON object, got {type(raw).__name__}.")

        fields: MutableMapping[str, Any] = {}
        for field in _IDENTITY_FIELDS:
            value = raw.get(field)
            if value is not None and not isinstance(value, str):
                raise TypeError(f"The field {field!r} must be a string, got {value!r}.")
            fields[field] = value or ''
        for field in ('labels', 'annotations'):
            fields[field] = parse_string_map(raw.get(field), field=field)
        for field in ('spec', 'status'):
            value = raw.get(field)
            if value is not None and not isinstance(value, Mapping):
                raise TypeError(f"The field {field!r} must be an object, got {value!r}.")
            fields[field] = dict(value or {})
        for field in ('created_at', 'updated_at'):
            value = raw.get(field)
            if value is not None and not isinstance(value, str):
                raise TypeError(f"The field {field!r} must be a string, got {value!r}.")
            fields[field] = value or None
        extras = {key: val for key, val in raw.items() if key not in _KNOWN_FIELDS}
        return cls(extras=extras, **fields)


def parse_string_map(value: Any, *, field: str) -> Dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise TypeError(f"The field {field!r} must be an object, got {value!r}.")
    for key, val in value.items():
        if not isinstance(key, str) or not isinstance(val, str):
            raise ValueError(f"The field {field!r} must map strings to strings, got {value!r}.")
    return dict(value)


def parse_timestamp(value: Optional[str]) -> Optional[datetime.datetime]:
    return iso8601.parse_date(value) if value else None
