"""
Name: Client Configuration Resolution

Responsibilities:
  - Build an explicit, immutable ClientConfig for each call
  - Resolve network, environment and access token from explicit arguments
    first, then LWORKS_* environment variables (via Settings)
  - Fail fast with ConfigurationError when something required is missing

Collaborators:
  - crosscutting/config.py: Settings / get_settings
  - domain/entities.py: Network, Environment parsing
  - hcs.py / container.py: call resolve_client_config() per request

Constraints:
  - No module-level mutable state: there is no "configure()" global
  - The resolved token is never logged
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..domain.entities import Environment, Network, parse_environment, parse_network
from .config import Settings, get_settings
from .exceptions import ConfigurationError
from .logger import logger

# Bad request, unauthorized and not found fail without retrying by default.
DEFAULT_BAIL_RETRY_STATUSES: Tuple[int, ...] = (400, 401, 404)


@dataclass(frozen=True)
class ClientConfig:
    """
    Everything a remote call needs, resolved up front.

    Attributes:
        network: mainnet / testnet
        environment: dev / stage / prod / public
        access_token: value sent in the Authorization header ("" for public)
        disable_tracking: skip usage telemetry for calls made with this config
        bail_retry_statuses: HTTP statuses that are never retried
    """

    network: Network
    environment: Environment
    access_token: str = ""
    disable_tracking: bool = False
    bail_retry_statuses: Tuple[int, ...] = DEFAULT_BAIL_RETRY_STATUSES

    @property
    def is_public(self) -> bool:
        return self.environment == Environment.PUBLIC


def ensure_network(
    network: Network | str | None = None, settings: Settings | None = None
) -> Network:
    s = settings or get_settings()
    candidate = network or s.network
    if not candidate:
        raise ConfigurationError(
            "Network is not configured. Set LWORKS_NETWORK or pass network on the request."
        )
    try:
        return parse_network(candidate)
    except ValueError as exc:
        raise ConfigurationError(str(exc), original_error=exc) from exc


def ensure_environment(
    environment: Environment | str | None = None,
    settings: Settings | None = None,
    *,
    for_mirror: bool = False,
) -> Environment:
    """
    Resolution order:
      1) explicit argument
      2) LWORKS_MIRROR_ENVIRONMENT (mirror calls only)
      3) LWORKS_ENVIRONMENT
      4) prod
    """
    s = settings or get_settings()
    sources = [environment]
    if for_mirror:
        sources.append(s.mirror_environment)
    sources.append(s.environment)

    for source in sources:
        parsed = parse_environment(source)
        if parsed is not None:
            return parsed
    return Environment.PROD


def ensure_access_token(
    network: Network,
    access_token: Optional[str] = None,
    settings: Settings | None = None,
) -> str:
    if access_token:
        return access_token

    s = settings or get_settings()
    network_token = (
        s.testnet_token if network == Network.TESTNET else s.mainnet_token
    )
    if network_token:
        logger.debug(
            "using LWORKS_<network>_TOKEN", extra={"network": network.value}
        )
        return network_token
    if s.token:
        logger.debug("using LWORKS_TOKEN")
        return s.token

    logger.warning("No access token from arguments or environment")
    raise ConfigurationError(
        "AccessToken is not configured. Set the environment variable corresponding "
        "to the network (or LWORKS_TOKEN), or pass access_token on the request."
    )


def resolve_client_config(
    *,
    network: Network | str | None = None,
    environment: Environment | str | None = None,
    access_token: Optional[str] = None,
    disable_tracking: Optional[bool] = None,
    bail_retry_statuses: Optional[Tuple[int, ...]] = None,
    for_mirror: bool = True,
    settings: Settings | None = None,
) -> ClientConfig:
    """Resolve a ClientConfig from explicit values with env fallbacks."""
    s = settings or get_settings()

    resolved_network = ensure_network(network, s)
    resolved_environment = ensure_environment(environment, s, for_mirror=for_mirror)

    if resolved_environment == Environment.PUBLIC:
        token = access_token or ""
    else:
        token = ensure_access_token(resolved_network, access_token, s)

    return ClientConfig(
        network=resolved_network,
        environment=resolved_environment,
        access_token=token,
        disable_tracking=(
            s.disable_tracking if disable_tracking is None else disable_tracking
        ),
        bail_retry_statuses=(
            tuple(bail_retry_statuses)
            if bail_retry_statuses is not None
            else DEFAULT_BAIL_RETRY_STATUSES
        ),
    )
