import argparse
import asyncio
import json
import logging
import sys
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from dotenv import load_dotenv
from eth_account import Account
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.types import RPCEndpoint

from arb_artifacts import (
    DEFAULT_CONTRACTS_DIR,
    UNISWAP_ARB_ABI,
    ContractArtifact,
    compile_contract,
    load_artifact,
)
from arb_config import ARB_AMOUNT, CONTRACT_NAME, DeploymentSettings
from arb_errors import (
    ConfigurationError,
    ImpersonationError,
    NetworkError,
    RevertError,
    classify_error,
)
from network_config import CompilerSettings, NetworkProfile, build_config, get_network

load_dotenv()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%H:%M:%S"
)
logger = logging.getLogger("ArbDeploy")

ArtifactLoader = Callable[[], ContractArtifact]


@dataclass(frozen=True)
class Signer:
    address: str
    # None when the node signs (unlocked or impersonated account)
    private_key: Optional[str] = None

    @property
    def node_managed(self) -> bool:
        return self.private_key is None


@dataclass
class DeploymentResult:
    ok: bool
    error_kind: Optional[str] = None
    error: Optional[BaseException] = None
    signer: Optional[Signer] = None
    chain_id: Optional[int] = None
    contract_address: Optional[str] = None
    deployed: bool = False
    tx_hash: Optional[str] = None

    @property
    def exit_code(self) -> int:
        return 0 if self.ok else 1


class DeploymentWorkflow:
    """Connect, optionally impersonate, attach or deploy UniSwapArb, then call startArb once."""

    def __init__(
        self,
        w3: AsyncWeb3,
        profile: NetworkProfile,
        settings: DeploymentSettings,
        artifact_loader: Optional[ArtifactLoader] = None,
    ):
        self.w3 = w3
        self.profile = profile
        self.settings = settings
        self.artifact_loader = artifact_loader
        self.signer: Optional[Signer] = None
        self.chain_id: Optional[int] = None
        self.contract = None
        self.deployed = False
        self.tx_hash: Optional[str] = None

    async def get_signers(self) -> List[Signer]:
        if self.profile.accounts:
            return [Signer(Account.from_key(key).address, key) for key in self.profile.accounts]
        accounts = await self.w3.eth.accounts
        return [Signer(Web3.to_checksum_address(a)) for a in accounts]

    async def connect(self) -> Signer:
        if not await self.w3.is_connected():
            raise NetworkError(f"rpc not connected: {self.profile.name}")
        self.chain_id = await self.w3.eth.chain_id
        signers = await self.get_signers()
        if not signers:
            raise ConfigurationError(f"no signer available on {self.profile.name}")
        self.signer = signers[0]
        return self.signer

    async def impersonate(self, address: str) -> Signer:
        method = self.settings.impersonate_method
        logger.info(f"Impersonating {address} via {method}")
        response = await self.w3.provider.make_request(RPCEndpoint(method), [address])
        if response.get("error"):
            error = response["error"]
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ImpersonationError(f"{method} rejected for {address}: {message}")
        self.signer = Signer(address)
        return self.signer

    async def log_deployer(self) -> None:
        balance = await self.w3.eth.get_balance(self.signer.address)
        logger.info(f"Deploying contracts with the account: {self.signer.address}")
        logger.info(f"Account balance: {balance}")

    async def send(self, fn, label: str):
        """Send a contract call or constructor from the current signer and wait for it to be mined."""
        address = self.signer.address
        if self.signer.node_managed:
            tx_hash = await fn.transact({"from": address})
        else:
            gas_estimate = await fn.estimate_gas({"from": address})
            tx = await fn.build_transaction(
                {
                    "from": address,
                    "nonce": await self.w3.eth.get_transaction_count(address),
                    "chainId": self.chain_id,
                    "gas": int(gas_estimate * self.settings.gas_multiplier),
                }
            )
            signed = self.w3.eth.account.sign_transaction(tx, self.signer.private_key)
            tx_hash = await self.w3.eth.send_raw_transaction(signed.raw_transaction)

        tx_hex = Web3.to_hex(tx_hash)
        logger.info(f"{label} tx sent: {tx_hex}")
        receipt = await self.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.settings.wait_timeout
        )
        if receipt["status"] != 1:
            raise RevertError(f"{label} reverted on chain", tx_hex)
        self.tx_hash = tx_hex
        return receipt

    def attach(self, address: str):
        logger.info(f"Attaching to {CONTRACT_NAME} at {address}")
        self.contract = self.w3.eth.contract(address=address, abi=UNISWAP_ARB_ABI)
        return self.contract

    async def deploy(self):
        if self.artifact_loader is None:
            raise ConfigurationError(f"no {CONTRACT_NAME} artifact available to deploy")
        artifact = self.artifact_loader()
        factory = self.w3.eth.contract(abi=artifact.abi, bytecode=artifact.bytecode)
        logger.info("About to deploy")
        receipt = await self.send(factory.constructor(*self.settings.constructor_args()), "deploy")
        address = receipt["contractAddress"]
        logger.info(f"deployed contract address: {address}")
        self.contract = self.w3.eth.contract(address=address, abi=artifact.abi)
        self.deployed = True
        return self.contract

    async def resolve_contract(self):
        if self.settings.deployment_address:
            return self.attach(self.settings.deployment_address)
        return await self.deploy()

    async def invoke(self, amount: int = ARB_AMOUNT):
        logger.info(f"Calling startArb({amount})")
        return await self.send(self.contract.functions.startArb(amount), "startArb")

    def result(self, error: Optional[BaseException] = None) -> DeploymentResult:
        return DeploymentResult(
            ok=error is None,
            error_kind=classify_error(error) if error is not None else None,
            error=error,
            signer=self.signer,
            chain_id=self.chain_id,
            contract_address=self.contract.address if self.contract is not None else None,
            deployed=self.deployed,
            tx_hash=self.tx_hash,
        )

    async def run(self) -> DeploymentResult:
        try:
            await self.connect()
            if self.settings.impersonate_address:
                await self.impersonate(self.settings.impersonate_address)
            await self.log_deployer()
            await self.resolve_contract()
            await self.invoke()
        except Exception as e:
            return self.result(e)
        return self.result()


def make_artifact_loader(
    compiler: CompilerSettings,
    artifact_path: Optional[str] = None,
    contracts_dir: Path = DEFAULT_CONTRACTS_DIR,
    remappings: Sequence[str] = (),
) -> ArtifactLoader:
    if artifact_path:
        return lambda: load_artifact(Path(artifact_path))
    return lambda: compile_contract(CONTRACT_NAME, compiler, contracts_dir, remappings)


def update_json(path: Path, updates: Dict[str, object]) -> None:
    data: Dict[str, object] = {}
    if path.exists():
        data = json.loads(path.read_text())
    data.update(updates)
    path.write_text(json.dumps(data, indent=2) + "\n")


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=f"Deploy or attach to {CONTRACT_NAME} and call startArb.")
    parser.add_argument("--network", default="hardhat", help="Configured network name (hardhat, mainnet, rinkeby).")
    parser.add_argument("--deployment", default=None, help="Existing contract address (env UNISWAP_ARB_ADDRESS).")
    parser.add_argument("--deploy", action="store_true", help="Deploy a new contract even if an address is configured.")
    parser.add_argument("--impersonate", default=None, help="Account to impersonate on a dev fork (env IMPERSONATE_ADDRESS).")
    parser.add_argument("--impersonate-method", default=None, help="Impersonation RPC method (default hardhat_impersonateAccount).")
    parser.add_argument("--artifact", default=None, help="Compiled artifact JSON instead of compiling contracts/.")
    parser.add_argument("--contracts-dir", default=str(DEFAULT_CONTRACTS_DIR), help="Solidity sources directory; imports resolve against its parent.")
    parser.add_argument(
        "--remapping",
        action="append",
        default=[],
        help="solc import remapping prefix=path, repeatable (e.g. @uniswap/=node_modules/@uniswap/).",
    )
    parser.add_argument("--json-file", default="arb_contracts.json", help="JSON file to store address.")
    parser.add_argument("--no-write-json", action="store_true", help="Skip writing address to JSON.")
    parser.add_argument("--gas-multiplier", type=float, default=None, help="Multiplier for gas estimate.")
    return parser


async def main_async(argv: Optional[List[str]] = None) -> int:
    args = create_parser().parse_args(argv)

    try:
        config = build_config()
        profile = get_network(config, args.network)
        settings = DeploymentSettings.from_env(
            deployment_address=args.deployment,
            impersonate_address=args.impersonate,
            impersonate_method=args.impersonate_method,
            gas_multiplier=args.gas_multiplier,
        )
        if args.deploy:
            settings = replace(settings, deployment_address=None)
        rpc_url = profile.rpc_url()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 1

    w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": 30}))
    loader = make_artifact_loader(config.compiler, args.artifact, Path(args.contracts_dir), args.remapping)
    try:
        result = await DeploymentWorkflow(w3, profile, settings, loader).run()
    finally:
        await w3.provider.disconnect()

    if not result.ok:
        logger.error(f"Deployment failed ({result.error_kind}): {result.error}", exc_info=result.error)
        return result.exit_code

    if result.deployed and not args.no_write_json:
        try:
            update_json(
                Path(args.json_file),
                {
                    "uniswap_arb": result.contract_address,
                    "uniswap_arb_chain_id": result.chain_id,
                },
            )
        except (OSError, ValueError) as e:
            logger.error(
                f"Deployed {CONTRACT_NAME} at {result.contract_address} but could not record it in {args.json_file}: {e}",
                exc_info=e,
            )
            return 1
    logger.info(f"startArb confirmed: {result.tx_hash}")
    return result.exit_code


def main() -> None:
    sys.exit(asyncio.run(main_async()))


if __name__ == "__main__":
    main()
