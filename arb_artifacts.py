import json
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Sequence

from solcx import compile_standard, install_solc
from solcx.exceptions import SolcError

from arb_errors import ConfigurationError
from network_config import CompilerSettings

DEFAULT_CONTRACTS_DIR = Path("contracts")

# Minimal ABI - constructor and the startArb entry point
UNISWAP_ARB_ABI = [
    {
        "inputs": [
            {"internalType": "address", "name": "_swapRouter", "type": "address"},
            {"internalType": "address", "name": "_factory", "type": "address"},
            {"internalType": "address", "name": "_WETH9", "type": "address"},
            {"internalType": "address", "name": "_looks", "type": "address"},
            {"internalType": "address", "name": "_feeSharing", "type": "address"},
        ],
        "stateMutability": "nonpayable",
        "type": "constructor",
    },
    {
        "inputs": [{"internalType": "uint256", "name": "amount", "type": "uint256"}],
        "name": "startArb",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]


@dataclass(frozen=True)
class ContractArtifact:
    name: str
    abi: List[dict]
    bytecode: str


def load_sources(contracts_dir: Path) -> Dict[str, Dict[str, str]]:
    sources: Dict[str, Dict[str, str]] = {}
    if not contracts_dir.is_dir():
        return sources
    root = contracts_dir.parent
    for path in sorted(contracts_dir.rglob("*.sol")):
        sources[path.relative_to(root).as_posix()] = {"content": path.read_text()}
    return sources


def compile_contract(
    name: str,
    compiler: CompilerSettings,
    contracts_dir: Path = DEFAULT_CONTRACTS_DIR,
    remappings: Sequence[str] = (),
) -> ContractArtifact:
    """
    Compile every Solidity source under contracts_dir and return the named contract.

    Imports resolve against the parent of contracts_dir. Package imports such as
    "@uniswap/..." need a remapping like "@uniswap/=node_modules/@uniswap/".

    Raises:
        ConfigurationError: If there are no sources, a remapping is malformed, solc
            fails, or the contract is not part of the output.
    """
    sources = load_sources(contracts_dir)
    if not sources:
        raise ConfigurationError(f"no Solidity sources found in {contracts_dir}")
    for remapping in remappings:
        prefix, sep, target = remapping.partition("=")
        if not sep or not prefix or not target:
            raise ConfigurationError(f"invalid remapping {remapping!r}, expected prefix=path")
    base_path = contracts_dir.resolve().parent

    install_solc(compiler.version)
    try:
        compiled = compile_standard(
            {
                "language": "Solidity",
                "sources": sources,
                "settings": {
                    "optimizer": {
                        "enabled": compiler.optimizer_enabled,
                        "runs": compiler.optimizer_runs,
                    },
                    "remappings": list(remappings),
                    "outputSelection": {"*": {"*": ["abi", "evm.bytecode"]}},
                },
            },
            base_path=str(base_path),
            allow_paths=[str(base_path)],
            solc_version=compiler.version,
        )
    except SolcError as e:
        raise ConfigurationError(f"solc {compiler.version} failed: {e}") from e

    for contracts in compiled.get("contracts", {}).values():
        if name in contracts:
            contract = contracts[name]
            return ContractArtifact(
                name=name,
                abi=contract["abi"],
                bytecode=contract["evm"]["bytecode"]["object"],
            )
    raise ConfigurationError(f"contract {name} not found in {contracts_dir}")


def load_artifact(path: Path) -> ContractArtifact:
    """Load a Hardhat-style artifact JSON (abi + bytecode)."""
    if not path.exists():
        raise ConfigurationError(f"artifact not found: {path}")
    data = json.loads(path.read_text())
    bytecode = data.get("bytecode") or data.get("bin")
    if isinstance(bytecode, dict):
        bytecode = bytecode.get("object")
    if not data.get("abi") or not bytecode or bytecode == "0x":
        raise ConfigurationError(f"artifact {path} has no abi or bytecode")
    return ContractArtifact(
        name=data.get("contractName", path.stem),
        abi=data["abi"],
        bytecode=bytecode,
    )
