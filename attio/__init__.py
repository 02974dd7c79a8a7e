"""
The main module of the Attio client with all the exported functions & classes.
"""
# isort: skip_file

# Unlike all other places, where we import other modules and refer
# the functions via the modules, this is the library's top-level interface,
# as it is seen by the users. So, we export the individual names.

from attio._cogs.clients.errors import (
    APIError,
    APIClientError,
    APIBadRequestError,
    APIValidationError,
    APIUnauthorizedError,
    APIForbiddenError,
    APINotFoundError,
    APIConflictError,
    APIRateLimitedError,
    APIServerError,
    APIServiceUnavailableError,
)
from attio._cogs.clients.transports import (
    Client,
    RequestOptions,
    Transport,
    get_transport,
)
from attio._cogs.configs.configuration import (
    AuthSettings,
    NetworkingSettings,
    ClientSettings,
)
from attio._cogs.helpers.typedefs import (
    Logger,
)
from attio._cogs.helpers.versions import (
    version as __version__,
)
from attio._cogs.structs.capabilities import (
    Capability,
)
from attio._cogs.structs.diffs import (
    Diff,
    DiffItem,
    DiffOperation,
)
from attio._cogs.structs.exceptions import (
    AttioError,
    IdentifierError,
    ImmutableResourceError,
    InvalidRequestError,
    ConfigurationError,
    SignatureVerificationError,
)
from attio._cogs.structs.identifiers import (
    ScalarId,
    CompositeId,
)
from attio._cogs.structs.periods import (
    TimePeriod,
)
from attio._cogs.structs.values import (
    AttributeSpec,
    Schema,
)
from attio._core.engines.loggers import (
    LogFormat,
    ResourceLogger,
    configure as configure_logging,
)
from attio._core.resources.base import (
    APIResource,
    Field,
)
from attio._core.resources.batching import (
    BatchOutcome,
    run_batch,
)
from attio._core.resources.pages import (
    ListPage,
)
from attio._core.resources.records import (
    Record,
    Person,
    Company,
    Deal,
)
from attio._core.resources.objects import (
    Object,
)
from attio._core.resources.attributes import (
    Attribute,
)
from attio._core.resources.lists import (
    List,
)
from attio._core.resources.entries import (
    Entry,
)
from attio._core.resources.notes import (
    Note,
)
from attio._core.resources.tasks import (
    Task,
)
from attio._core.resources.comments import (
    Comment,
)
from attio._core.resources.threads import (
    Thread,
)
from attio._core.resources.webhooks import (
    Webhook,
)
from attio._core.resources.members import (
    WorkspaceMember,
)
from attio._core.resources.meta import (
    Meta,
)
from attio._kits.webhooks import (
    WebhookEvent,
    WebhookReceiver,
    calculate_signature,
    verify_signature,
    is_valid_signature,
    extract_from_headers,
)

__all__ = [
    'APIError',
    'APIClientError',
    'APIBadRequestError',
    'APIValidationError',
    'APIUnauthorizedError',
    'APIForbiddenError',
    'APINotFoundError',
    'APIConflictError',
    'APIRateLimitedError',
    'APIServerError',
    'APIServiceUnavailableError',
    'Client',
    'RequestOptions',
    'Transport',
    'get_transport',
    'AuthSettings',
    'NetworkingSettings',
    'ClientSettings',
    'Logger',
    'Capability',
    'Diff',
    'DiffItem',
    'DiffOperation',
    'AttioError',
    'IdentifierError',
    'ImmutableResourceError',
    'InvalidRequestError',
    'ConfigurationError',
    'SignatureVerificationError',
    'ScalarId',
    'CompositeId',
    'TimePeriod',
    'AttributeSpec',
    'Schema',
    'LogFormat',
    'ResourceLogger',
    'configure_logging',
    'APIResource',
    'Field',
    'BatchOutcome',
    'run_batch',
    'ListPage',
    'Record',
    'Person',
    'Company',
    'Deal',
    'Object',
    'Attribute',
    'List',
    'Entry',
    'Note',
    'Task',
    'Comment',
    'Thread',
    'Webhook',
    'WorkspaceMember',
    'Meta',
    'WebhookEvent',
    'WebhookReceiver',
    'calculate_signature',
    'verify_signature',
    'is_valid_signature',
    'extract_from_headers',
]
