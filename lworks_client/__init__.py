"""Typed async client for the lworks mirror services."""

from .crosscutting.client_config import ClientConfig, resolve_client_config
from .crosscutting.config import LIBRARY_VERSION as __version__
from .crosscutting.config import Settings, get_settings
from .crosscutting.exceptions import (
    ConfigurationError,
    DecodeError,
    IncompleteSequenceError,
    LworksError,
    MalformedFragmentError,
    MirrorResponseError,
    NotFoundError,
    ParseError,
)
from .domain.entities import ChunkInfo, Environment, Fragment, Network, TransactionId
from .hcs import (
    call_mirror,
    decode_fragment,
    get_all_messages,
    get_complete_message,
    parse_fragment,
)
from .infrastructure.services import MirrorClient, call_mirror_with_fallback

__all__ = [
    "ChunkInfo",
    "ClientConfig",
    "ConfigurationError",
    "DecodeError",
    "Environment",
    "Fragment",
    "IncompleteSequenceError",
    "LworksError",
    "MalformedFragmentError",
    "MirrorClient",
    "MirrorResponseError",
    "Network",
    "NotFoundError",
    "ParseError",
    "Settings",
    "TransactionId",
    "__version__",
    "call_mirror",
    "call_mirror_with_fallback",
    "decode_fragment",
    "get_all_messages",
    "get_complete_message",
    "get_settings",
    "parse_fragment",
    "resolve_client_config",
]
