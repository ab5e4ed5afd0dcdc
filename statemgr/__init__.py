"""
The main statemgr module for all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual functions.

from statemgr._cogs.configs.configuration import (
    ClientSettings,
    NetworkingSettings,
    PaginationSettings,
    ClientIdentitySettings,
)
from statemgr._cogs.helpers.typedefs import (
    Logger,
)
from statemgr._cogs.helpers.versions import (
    version as __version__,
)
from statemgr._cogs.clients.errors import (
    StateManagerError,
    APIError,
    APIBadInputError,
    APINotFoundError,
    APIConflictError,
    APIServerError,
    APITransportError,
    APIEncodeError,
    APITimeoutError,
    APIDecodeError,
    PaginationError,
)
from statemgr._cogs.structs.bodies import (
    Object,
    Resource,
    RawResource,
    Labels,
    Annotations,
)
from statemgr._cogs.structs.references import (
    GroupKind,
    ObjectKey,
    ListOpts,
    get_url,
    get_collection_url,
    get_listing_url,
)
from statemgr._core.engines.loggers import (
    configure,
    LogFormat,
    ObjectLogger,
)
from statemgr._core.providers import (
    StateManagerProvider,
)

__all__ = [
    'configure', 'LogFormat', 'ObjectLogger',
    'ClientSettings', 'NetworkingSettings', 'PaginationSettings', 'ClientIdentitySettings',
    'Logger',
    'StateManagerError',
    'APIError', 'APIBadInputError', 'APINotFoundError', 'APIConflictError', 'APIServerError',
    'APITransportError', 'APIEncodeError', 'APITimeoutError',
    'APIDecodeError', 'PaginationError',
    'Object', 'Resource', 'RawResource', 'Labels', 'Annotations',
    'GroupKind', 'ObjectKey', 'ListOpts',
    'get_url', 'get_collection_url', 'get_listing_url',
    'StateManagerProvider',
]
