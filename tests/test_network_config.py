import logging
import os
import sys

import pytest

# Add repo root to path
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
from arb_errors import ConfigurationError
from network_config import (
    DEFAULT_LOCAL_NODE_URL,
    DEFAULT_SOL_VERSION,
    build_config,
    get_network,
    is_configured,
    mask_key,
)

LOCAL_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
MAIN_KEY = "0x59c6995e998f97a5a0044966f0945389dc9e86dae88c7a8412f4603b6b78690d"
TEST_KEY = "0x5de4111afa1a4b94908f83103eb1f1706367c2e68ca870fc3fb9a804cdab365a"


@pytest.mark.parametrize(
    "env",
    [
        {},
        {"MAINNET_DEPLOY_PRIVATE_KEY": MAIN_KEY},
        {"MAINNET_NODE_URL": "https://eth.example"},
        {"MAINNET_DEPLOY_PRIVATE_KEY": "", "MAINNET_NODE_URL": "https://eth.example"},
    ],
)
def test_mainnet_absent_without_key_and_url(env):
    config = build_config(env)
    assert "mainnet" not in config.networks
    assert "hardhat" in config.networks


@pytest.mark.parametrize(
    "env",
    [
        {"RINKEBY_DEPLOY_PRIVATE_KEY": TEST_KEY},
        {"RINKEBY_NODE_URL": "https://rinkeby.example"},
    ],
)
def test_testnet_absent_without_key_and_url(env):
    assert "rinkeby" not in build_config(env).networks


def test_remote_networks_present_with_key_and_url():
    config = build_config(
        {
            "MAINNET_DEPLOY_PRIVATE_KEY": MAIN_KEY,
            "MAINNET_NODE_URL": "https://eth.example",
            "RINKEBY_DEPLOY_PRIVATE_KEY": TEST_KEY,
            "RINKEBY_NODE_URL": "https://rinkeby.example",
        }
    )
    mainnet = get_network(config, "mainnet")
    assert mainnet.url == "https://eth.example"
    assert mainnet.accounts == (MAIN_KEY,)
    assert mainnet.forking_url is None
    assert get_network(config, "rinkeby").accounts == (TEST_KEY,)


def test_local_profile_with_key_and_fork():
    config = build_config(
        {"LOCALNET_DEPLOY_PRIVATE_KEY": LOCAL_KEY, "FORK_NODE_URL": "https://fork.example"}
    )
    local = config.networks["hardhat"]
    assert local.accounts == (LOCAL_KEY,)
    assert local.forking_url == "https://fork.example"


def test_local_profile_always_present_and_bare():
    local = build_config({}).networks["hardhat"]
    assert local.accounts == ()
    assert local.forking_url is None
    assert local.url is None


def test_local_rpc_url_only_reads_the_given_mapping(monkeypatch):
    monkeypatch.setenv("LOCALNET_NODE_URL", "http://10.0.0.9:8545")
    assert build_config({}).networks["hardhat"].rpc_url() == DEFAULT_LOCAL_NODE_URL


def test_local_node_url_comes_from_env_mapping(caplog):
    with caplog.at_level(logging.INFO, logger="NetworkConfig"):
        config = build_config({"LOCALNET_NODE_URL": "http://10.0.0.5:8545"})
    local = config.networks["hardhat"]
    assert local.url == "http://10.0.0.5:8545"
    assert local.rpc_url() == "http://10.0.0.5:8545"
    assert config.as_dict()["networks"]["hardhat"] == {"url": "http://10.0.0.5:8545"}
    assert "http://10.0.0.5:8545" in caplog.text


def test_compiler_settings():
    assert build_config({}).compiler.version == DEFAULT_SOL_VERSION
    compiler = build_config({"SOL_VERSION": "0.8.20"}).compiler
    assert compiler.version == "0.8.20"
    assert compiler.optimizer_enabled is True
    assert compiler.optimizer_runs == 200


def test_config_is_immutable():
    config = build_config({})
    with pytest.raises(TypeError):
        config.networks["mainnet"] = config.networks["hardhat"]
    with pytest.raises(AttributeError):
        config.networks["hardhat"].url = "http://elsewhere"


def test_get_network_missing_fails_fast():
    config = build_config({"MAINNET_DEPLOY_PRIVATE_KEY": MAIN_KEY})
    with pytest.raises(ConfigurationError) as exc:
        get_network(config, "mainnet")
    assert "hardhat" in str(exc.value)


def test_config_logged_with_masked_keys(caplog):
    with caplog.at_level(logging.INFO, logger="NetworkConfig"):
        build_config({"LOCALNET_DEPLOY_PRIVATE_KEY": LOCAL_KEY, "FORK_NODE_URL": "https://fork.example"})
    assert "https://fork.example" in caplog.text
    assert LOCAL_KEY not in caplog.text
    assert mask_key(LOCAL_KEY) in caplog.text


def test_as_dict_layout():
    config = build_config(
        {
            "FORK_NODE_URL": "https://fork.example",
            "MAINNET_DEPLOY_PRIVATE_KEY": MAIN_KEY,
            "MAINNET_NODE_URL": "https://eth.example",
        }
    )
    data = config.as_dict(mask_keys=False)
    assert data["solidity"]["settings"]["optimizer"] == {"enabled": True, "runs": 200}
    assert data["networks"]["hardhat"] == {"forking": {"url": "https://fork.example"}}
    assert data["networks"]["mainnet"] == {"url": "https://eth.example", "accounts": [MAIN_KEY]}


def test_is_configured():
    assert is_configured("k", "u")
    assert not is_configured("k", None)
    assert not is_configured(None, "u")
    assert not is_configured("", "")
