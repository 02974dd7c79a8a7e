"""
Type aliases shared by the client's modules.

``logging.LoggerAdapter`` is a generic class in the type stubs,
but is not subscriptable at runtime on the older supported Pythons,
so it is defined differently for type-checking and for the runtime.
"""
import logging
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    LoggerAdapter = logging.LoggerAdapter[Any]
else:
    LoggerAdapter = logging.LoggerAdapter

# Anything the callers can pass as a logger: the client only uses the common logging methods.
Logger = Union[logging.Logger, LoggerAdapter]
