"""
The root of the client's exception hierarchy and the locally raised errors.

Local errors are raised before any network call is made: when an identifier
cannot be resolved, when a resource type does not permit the operation,
or when the arguments are insufficient for a request.

The API errors, i.e. those reported by the server, are in
:mod:`attio._cogs.clients.errors` and are derived from the same root,
so that a single ``except AttioError:`` catches everything the client raises
on its own behalf (but not the programming errors, such as ``TypeError``).
"""


class AttioError(Exception):
    """ The base class for all errors raised by the client. """


class IdentifierError(AttioError, ValueError):
    """ An identifier cannot be resolved to a scalar for a request path. """


class ImmutableResourceError(AttioError):
    """ A resource type does not permit the requested operation. """


class InvalidRequestError(AttioError, ValueError):
    """ The arguments are insufficient or malformed for a request. """


class ConfigurationError(AttioError, ValueError):
    """ The settings are invalid. """


class SignatureVerificationError(AttioError):
    """ A webhook delivery has a bad or missing signature, or a stale timestamp. """
