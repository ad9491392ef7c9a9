"""
Network configuration for the UniSwapArb deployer.

Builds the compiler profile and the per-network connection profiles from
environment variables (a .env file is loaded if present). Remote networks are
only configured when both their private key and node URL are set.
"""

import logging
import os
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv

from arb_errors import ConfigurationError

load_dotenv()

logger = logging.getLogger("NetworkConfig")

DEFAULT_SOL_VERSION = "0.8.3"
DEFAULT_OPTIMIZER_RUNS = 200
DEFAULT_LOCAL_NODE_URL = "http://127.0.0.1:8545"

LOCAL_NETWORK = "hardhat"
MAIN_NETWORK = "mainnet"
TEST_NETWORK = "rinkeby"

# network name -> (private key variable, node url variable)
REMOTE_NETWORK_ENV = {
    MAIN_NETWORK: ("MAINNET_DEPLOY_PRIVATE_KEY", "MAINNET_NODE_URL"),
    TEST_NETWORK: ("RINKEBY_DEPLOY_PRIVATE_KEY", "RINKEBY_NODE_URL"),
}


@dataclass(frozen=True)
class CompilerSettings:
    version: str = DEFAULT_SOL_VERSION
    optimizer_enabled: bool = True
    optimizer_runs: int = DEFAULT_OPTIMIZER_RUNS


@dataclass(frozen=True)
class NetworkProfile:
    name: str
    url: Optional[str] = None
    accounts: Tuple[str, ...] = ()
    forking_url: Optional[str] = None

    @property
    def is_local(self) -> bool:
        return self.name == LOCAL_NETWORK

    def rpc_url(self) -> str:
        """URL to connect to; the local network falls back to the default node."""
        if self.url:
            return self.url
        if self.is_local:
            return DEFAULT_LOCAL_NODE_URL
        raise ConfigurationError(f"network {self.name} has no node url")

    def as_dict(self, mask_keys: bool = True) -> Dict[str, object]:
        data: Dict[str, object] = {}
        if self.url:
            data["url"] = self.url
        if self.accounts:
            data["accounts"] = [mask_key(k) if mask_keys else k for k in self.accounts]
        if self.forking_url:
            data["forking"] = {"url": self.forking_url}
        return data


@dataclass(frozen=True)
class ToolchainConfig:
    compiler: CompilerSettings = field(default_factory=CompilerSettings)
    networks: Mapping[str, NetworkProfile] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "networks", MappingProxyType(dict(self.networks)))

    def as_dict(self, mask_keys: bool = True) -> Dict[str, object]:
        return {
            "solidity": {
                "version": self.compiler.version,
                "settings": {
                    "optimizer": {
                        "enabled": self.compiler.optimizer_enabled,
                        "runs": self.compiler.optimizer_runs,
                    }
                },
            },
            "networks": {name: p.as_dict(mask_keys) for name, p in self.networks.items()},
        }


def mask_key(key: str) -> str:
    if len(key) <= 10:
        return "***"
    return f"{key[:6]}...{key[-4:]}"


def is_configured(private_key: Optional[str], url: Optional[str]) -> bool:
    return bool(private_key) and bool(url)


def build_config(env: Optional[Mapping[str, str]] = None) -> ToolchainConfig:
    if env is None:
        env = os.environ

    compiler = CompilerSettings(version=env.get("SOL_VERSION") or DEFAULT_SOL_VERSION)

    local_key = env.get("LOCALNET_DEPLOY_PRIVATE_KEY")
    fork_url = env.get("FORK_NODE_URL")
    networks: Dict[str, NetworkProfile] = {
        LOCAL_NETWORK: NetworkProfile(
            name=LOCAL_NETWORK,
            url=env.get("LOCALNET_NODE_URL") or None,
            accounts=(local_key,) if local_key else (),
            forking_url=fork_url or None,
        )
    }

    for name, (key_var, url_var) in REMOTE_NETWORK_ENV.items():
        key = env.get(key_var)
        url = env.get(url_var)
        if is_configured(key, url):
            networks[name] = NetworkProfile(name=name, url=url, accounts=(key,))

    config = ToolchainConfig(compiler=compiler, networks=networks)
    logger.info(f"Network config: {config.as_dict()['networks']}")
    return config


def get_network(config: ToolchainConfig, name: str) -> NetworkProfile:
    profile = config.networks.get(name)
    if profile is None:
        available = ", ".join(sorted(config.networks)) or "none"
        raise ConfigurationError(f"network {name} is not configured (available: {available})")
    return profile
