import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv
from web3 import Web3

from arb_errors import ConfigurationError

load_dotenv()

CONTRACT_NAME = "UniSwapArb"

# Ethereum mainnet addresses
SWAP_ROUTER = "0xE592427A0AEce92De3Edee1F18E0157C05861564"
UNI_FACTORY = "0x1F98431c8aD98523631AE4a59f267346ea31F984"
WETH9 = "0xC02aaA39b223FE8D0A0e5C4F27eAD9083C756Cc2"
LOOKS_ADDR = "0xf4d2888d29D722226FafA5d9B24F9164c092421E"
FEE_SHARING_ADDR = "0xBcD7254A1D759EFA08eC7c3291B2E85c5dCC12ce"

PRECISION_FACTOR = 10**18
ARB_AMOUNT = 100_000 * PRECISION_FACTOR

DEFAULT_IMPERSONATE_METHOD = "hardhat_impersonateAccount"
DEFAULT_GAS_MULTIPLIER = 1.2
DEFAULT_WAIT_TIMEOUT = 120


def checksum(address: str, label: str) -> str:
    if not Web3.is_address(address):
        raise ConfigurationError(f"invalid {label} address: {address!r}")
    return Web3.to_checksum_address(address)


def optional_checksum(address: Optional[str], label: str) -> Optional[str]:
    if not address:
        return None
    return checksum(address, label)


@dataclass(frozen=True)
class DeploymentSettings:
    swap_router: str = SWAP_ROUTER
    uni_factory: str = UNI_FACTORY
    weth: str = WETH9
    looks: str = LOOKS_ADDR
    fee_sharing: str = FEE_SHARING_ADDR
    deployment_address: Optional[str] = None
    impersonate_address: Optional[str] = None
    impersonate_method: str = DEFAULT_IMPERSONATE_METHOD
    gas_multiplier: float = DEFAULT_GAS_MULTIPLIER
    wait_timeout: float = DEFAULT_WAIT_TIMEOUT

    def constructor_args(self) -> Tuple[str, str, str, str, str]:
        """UniSwapArb constructor arguments, in constructor order."""
        return (
            checksum(self.swap_router, "swap router"),
            checksum(self.uni_factory, "factory"),
            checksum(self.weth, "WETH"),
            checksum(self.looks, "reward token"),
            checksum(self.fee_sharing, "fee sharing"),
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, **overrides) -> "DeploymentSettings":
        if env is None:
            env = os.environ
        values = dict(
            swap_router=env.get("SWAP_ROUTER_ADDRESS") or SWAP_ROUTER,
            uni_factory=env.get("UNI_FACTORY_ADDRESS") or UNI_FACTORY,
            weth=env.get("WETH_ADDRESS") or WETH9,
            looks=env.get("LOOKS_ADDRESS") or LOOKS_ADDR,
            fee_sharing=env.get("FEE_SHARING_ADDRESS") or FEE_SHARING_ADDR,
            deployment_address=env.get("UNISWAP_ARB_ADDRESS") or None,
            impersonate_address=env.get("IMPERSONATE_ADDRESS") or None,
        )
        values.update({k: v for k, v in overrides.items() if v is not None})
        values["deployment_address"] = optional_checksum(values["deployment_address"], "deployment")
        values["impersonate_address"] = optional_checksum(values["impersonate_address"], "impersonation")
        return cls(**values)
