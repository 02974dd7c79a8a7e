"""
Logging of the resources' activities with the resource references attached.

Everything logged via the resource loggers carries a reference to the resource
(its type & id), which is then used either as a prefix of the messages in the
text formats, or as a separate field in the JSON format -- for the log parsers.
"""
import copy
import enum
import logging
from collections.abc import MutableMapping
from typing import TYPE_CHECKING, Any, TextIO

from pythonjsonlogger.core import RESERVED_ATTRS as _pjl_RESERVED_ATTRS
from pythonjsonlogger.json import JsonFormatter as _pjl_JsonFormatter

from attio._cogs.helpers import typedefs

logger = logging.getLogger('attio.resources')

# A key for resource references in JSON logs, as seen by the log parsers.
DEFAULT_JSON_REFKEY = 'resource'


class LogFormat(enum.Enum):
    """ Log formats, as specified on CLI. """
    PLAIN = '%(message)s'
    FULL = '[%(asctime)s] %(name)-20.20s [%(levelname)-8.8s] %(message)s'
    JSON = '-json-'  # not used for formatting, only for detection


class ResourceFormatter(logging.Formatter):
    pass


class ResourceTextFormatter(ResourceFormatter, logging.Formatter):
    pass


class ResourceJsonFormatter(ResourceFormatter, _pjl_JsonFormatter):
    def __init__(
            self,
            *args: Any,
            refkey: str | None = None,
            **kwargs: Any,
    ) -> None:
        # Avoid type checking, as the args are not in the parent consructor.
        reserved_attrs = kwargs.pop('reserved_attrs', _pjl_RESERVED_ATTRS)
        reserved_attrs = set(reserved_attrs)
        reserved_attrs |= {'attio_ref'}
        kwargs |= dict(reserved_attrs=reserved_attrs)
        kwargs.setdefault('timestamp', True)
        super().__init__(*args, **kwargs)
        self._refkey: str = refkey or DEFAULT_JSON_REFKEY

    def add_fields(
            self,
            log_record: dict[str, object],
            record: logging.LogRecord,
            message_dict: dict[str, object],
    ) -> None:
        super().add_fields(log_record, record, message_dict)

        if self._refkey and hasattr(record, 'attio_ref'):
            ref = getattr(record, 'attio_ref')
            log_record[self._refkey] = ref

        if 'severity' not in log_record:
            log_record['severity'] = (
                "debug" if record.levelno <= logging.DEBUG else
                "info" if record.levelno <= logging.INFO else
                "warn" if record.levelno <= logging.WARNING else
                "error" if record.levelno <= logging.ERROR else
                "fatal")


class ResourcePrefixingMixin(ResourceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        if hasattr(record, 'attio_ref'):
            ref = getattr(record, 'attio_ref')
            kind = ref.get('type', '')
            rid = ref.get('id') or 'new'
            prefix = f"[{kind}/{rid}]" if kind else f"[{rid}]"
            record = copy.copy(record)  # shallow
            record.msg = f"{prefix} {record.msg}"
        return super().format(record)


class ResourcePrefixingTextFormatter(ResourcePrefixingMixin, ResourceTextFormatter):
    pass


class ResourcePrefixingJsonFormatter(ResourcePrefixingMixin, ResourceJsonFormatter):
    pass


class ResourceLogger(typedefs.LoggerAdapter):
    """
    A logger/adapter to carry the resource identifiers for formatting.

    Constructed for each individual resource instance on demand.
    The reference is taken at construction: if the resource gets its id later
    (e.g. after creation), a new logger is needed to see the new id.
    """

    def __init__(self, *, kind: str, id: str | None) -> None:
        super().__init__(logger, dict(
            attio_ref=dict(
                type=kind,
                id=id,
            ),
        ))

    def process(
            self,
            msg: str,
            kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        # Native logging overwrites the message's extra with the adapter's extra.
        # We merge them, so that both message's & adapter's extras are available.
        kwargs["extra"] = (self.extra or {}) | kwargs.get('extra', {})
        return msg, kwargs


# Used to identify and remove our own handlers on re-configuration, e.g. in CLI tests,
# where the previous handlers can have their streams closed by Click's runner.
if TYPE_CHECKING:
    class _AttioStreamHandler(logging.StreamHandler[TextIO]):
        pass
else:
    class _AttioStreamHandler(logging.StreamHandler):
        pass


def configure(
        debug: bool | None = None,
        verbose: bool | None = None,
        quiet: bool | None = None,
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: bool | None = False,
        log_refkey: str | None = None,
) -> None:
    log_level = 'DEBUG' if debug or verbose else 'WARNING' if quiet else 'INFO'
    formatter = make_formatter(log_format=log_format, log_prefix=log_prefix, log_refkey=log_refkey)
    handler = _AttioStreamHandler()
    handler.setFormatter(formatter)
    logger = logging.getLogger()
    logger.handlers[:] = [h for h in logger.handlers if not isinstance(h, _AttioStreamHandler)]
    logger.addHandler(handler)
    logger.setLevel(log_level)

    # Prevent the low-level logging unless in the debug mode. Keep only the client's messages.
    # For no-propagation loggers, add a dummy null handler to prevent printing the messages.
    for name in ['asyncio', 'aiohttp']:
        logger = logging.getLogger(name)
        logger.propagate = bool(debug)
        if not debug:
            logger.handlers[:] = [logging.NullHandler()]


def make_formatter(
        log_format: LogFormat = LogFormat.FULL,
        log_prefix: bool | None = False,
        log_refkey: str | None = None,
) -> ResourceFormatter:
    log_prefix = log_prefix if log_prefix is not None else bool(log_format is not LogFormat.JSON)
    match log_format:
        case LogFormat.JSON:
            if log_prefix:
                return ResourcePrefixingJsonFormatter(refkey=log_refkey)
            else:
                return ResourceJsonFormatter(refkey=log_refkey)
        case LogFormat():
            if log_prefix:
                return ResourcePrefixingTextFormatter(log_format.value)
            else:
                return ResourceTextFormatter(log_format.value)
        case str():
            if log_prefix:
                return ResourcePrefixingTextFormatter(log_format)
            else:
                return ResourceTextFormatter(log_format)
        case _:
            raise ValueError(f"Unsupported log format: {log_format!r}")
