"""Mirror base URL per environment and network."""

from __future__ import annotations

from ..domain.entities import Environment, Network

_PUBLIC_MIRROR_URLS: dict[Network, str] = {
    Network.TESTNET: "https://testnet.mirrornode.hedera.com",
    Network.MAINNET: "https://mainnet-public.mirrornode.hedera.com",
}


def get_environment_prefix(environment: Environment) -> str:
    return "" if environment == Environment.PROD else f"{environment.value}-"


def get_mirror_url(environment: Environment, network: Network) -> str:
    if environment == Environment.PUBLIC:
        return _PUBLIC_MIRROR_URLS[network]
    prefix = get_environment_prefix(environment)
    return f"https://{network.value}.{prefix}mirror.lworks.io"
