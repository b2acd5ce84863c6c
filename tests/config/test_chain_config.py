import pytest

from router_fleet.config import ChainConfig, ChainFamily
from router_fleet.exceptions import UnsupportedNetworkError


def test_families():
    assert ChainConfig.get_family("Bsc") == ChainFamily.EVM
    assert ChainConfig.get_family("Tron") == ChainFamily.TRON
    assert ChainConfig.get_family("zkSync") == ChainFamily.ZKSYNC


def test_unknown_network():
    with pytest.raises(UnsupportedNetworkError):
        ChainConfig.get_family("Atlantis")
    with pytest.raises(UnsupportedNetworkError):
        ChainConfig.get_chain_id("Atlantis")


def test_chain_ids():
    assert ChainConfig.get_chain_id("Eth") == 1
    assert ChainConfig.get_chain_id("Tron") == 0x2B6653DC


def test_rpc_url_override(monkeypatch):
    monkeypatch.setenv("BSC_RPC_URL", "http://localhost:8545")
    assert ChainConfig.get_rpc_url("Bsc") == "http://localhost:8545"


def test_rpc_url_default(monkeypatch):
    monkeypatch.delenv("BSC_RPC_URL", raising=False)
    assert ChainConfig.get_rpc_url("Bsc") == ChainConfig.RPC_URLS["Bsc"]


def test_tron_network_names():
    assert ChainConfig.get_tron_network("Tron") == "mainnet"
    assert ChainConfig.get_tron_network("TronTest") == "nile"
    with pytest.raises(UnsupportedNetworkError):
        ChainConfig.get_tron_network("Bsc")


def test_deploy_factory(monkeypatch):
    monkeypatch.delenv("BSC_DEPLOY_FACTORY", raising=False)
    monkeypatch.delenv("TRON_DEPLOY_FACTORY", raising=False)
    monkeypatch.delenv("ZKSYNC_DEPLOY_FACTORY", raising=False)

    assert ChainConfig.get_deploy_factory("Bsc") == ChainConfig.DEFAULT_DEPLOY_FACTORY
    assert ChainConfig.get_deploy_factory("Tron") is None
    assert ChainConfig.get_deploy_factory("zkSync") is None

    monkeypatch.setenv("TRON_DEPLOY_FACTORY", "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t")
    assert ChainConfig.get_deploy_factory("Tron") == "TR7NHqjeKQxGTCi8q8ZY4pL8otSzgjLj6t"


def test_router_specs():
    assert ChainConfig.get_router_spec("v2").contract_name == "ButterRouterV2"
    v3 = ChainConfig.get_router_spec("v3")
    assert v3.contract_name == "ButterRouterV4"
    assert v3.supports_referrer_fee
    with pytest.raises(UnsupportedNetworkError):
        ChainConfig.get_router_spec("v9")
