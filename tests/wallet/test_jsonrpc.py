from unittest.mock import MagicMock

import pytest
import requests

from tests.mocks import create_response
from x402_pay.errors import ProviderRpcError
from x402_pay.networks import get_chain_config
from x402_pay.wallet import (
    ConfirmationTimeout,
    HttpJsonRpcTransport,
    JsonRpcWalletProvider,
    TransactionReverted,
)
from x402_pay.wallet.erc20 import encode_balance_of, encode_transfer

PAYER = "0x1111111111111111111111111111111111111111"
ASSET = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
MERCHANT = "0x2222222222222222222222222222222222222222"
TX_HASH = "0x" + "cd" * 32


class ScriptedWallet:
    """EIP-1193 request function answering from a per-method script."""

    def __init__(self, script):
        self.script = {method: list(values) for method, values in script.items()}
        self.requests = []

    def __call__(self, method, params):
        self.requests.append((method, params))
        value = self.script[method].pop(0)
        if isinstance(value, BaseException):
            raise value
        return value


def _provider(script, **kwargs):
    wallet = ScriptedWallet(script)
    clock = iter(range(0, 10_000, 10))
    kwargs.setdefault("sleep", lambda seconds: None)
    kwargs.setdefault("clock", lambda: next(clock))
    return JsonRpcWalletProvider(wallet, **kwargs), wallet


def test_get_accounts_checksums():
    provider, _ = _provider({"eth_accounts": [[PAYER.lower()]]})
    assert provider.get_accounts() == [PAYER]


def test_get_accounts_requests_access_when_empty():
    provider, wallet = _provider({"eth_accounts": [[]], "eth_requestAccounts": [[PAYER]]})
    assert provider.get_accounts() == [PAYER]
    assert [m for m, _ in wallet.requests] == ["eth_accounts", "eth_requestAccounts"]


def test_get_chain_id_parses_hex():
    provider, _ = _provider({"eth_chainId": ["0x14a34"]})
    assert provider.get_chain_id() == 84532


def test_switch_and_add_chain_params():
    provider, wallet = _provider(
        {"wallet_switchEthereumChain": [None], "wallet_addEthereumChain": [None]}
    )
    config = get_chain_config("base-sepolia")
    provider.switch_chain(config.chain_id_hex)
    provider.add_chain(config)
    assert wallet.requests[0] == ("wallet_switchEthereumChain", [{"chainId": "0x14a34"}])
    assert wallet.requests[1] == ("wallet_addEthereumChain", [config.to_add_chain_params()])


def test_unknown_chain_error_propagates():
    provider, _ = _provider(
        {"wallet_switchEthereumChain": [ProviderRpcError(4902, "Unrecognized chain ID")]}
    )
    with pytest.raises(ProviderRpcError) as exc_info:
        provider.switch_chain("0x14a34")
    assert exc_info.value.code == 4902


def test_get_token_balance():
    provider, wallet = _provider({"eth_call": ["0x" + format(2_000_000, "064x")]})
    assert provider.get_token_balance(ASSET, PAYER) == 2_000_000
    assert wallet.requests[0] == (
        "eth_call",
        [{"to": ASSET, "data": encode_balance_of(PAYER)}, "latest"],
    )


def test_send_token_transfer():
    provider, wallet = _provider({"eth_sendTransaction": [TX_HASH]})
    assert provider.send_token_transfer(ASSET, PAYER, MERCHANT, 1_000_000) == TX_HASH
    assert wallet.requests[0] == (
        "eth_sendTransaction",
        [
            {
                "from": PAYER,
                "to": ASSET,
                "data": encode_transfer(MERCHANT, 1_000_000),
                "value": "0x0",
            }
        ],
    )


def test_wait_for_confirmation_polls_until_mined():
    receipt = {"transactionHash": TX_HASH, "blockNumber": "0x10", "status": "0x1"}
    provider, wallet = _provider(
        {
            "eth_getTransactionReceipt": [None, None, receipt],
            "eth_blockNumber": ["0x10"],
        }
    )
    assert provider.wait_for_confirmation(TX_HASH) == receipt
    assert [m for m, _ in wallet.requests].count("eth_getTransactionReceipt") == 3


def test_wait_for_more_confirmations():
    receipt = {"transactionHash": TX_HASH, "blockNumber": "0x10", "status": "0x1"}
    provider, _ = _provider(
        {
            "eth_getTransactionReceipt": [receipt, receipt],
            "eth_blockNumber": ["0x10", "0x11"],
        }
    )
    assert provider.wait_for_confirmation(TX_HASH, confirmations=2) == receipt


def test_wait_for_confirmation_reverted():
    receipt = {"transactionHash": TX_HASH, "blockNumber": "0x10", "status": "0x0"}
    provider, _ = _provider({"eth_getTransactionReceipt": [receipt]})
    with pytest.raises(TransactionReverted):
        provider.wait_for_confirmation(TX_HASH)


def test_wait_for_confirmation_times_out():
    provider, _ = _provider({"eth_getTransactionReceipt": [None] * 5})
    with pytest.raises(ConfirmationTimeout):
        provider.wait_for_confirmation(TX_HASH, timeout=25)


def test_sign_message():
    provider, wallet = _provider({"eth_accounts": [[PAYER]], "personal_sign": ["0xsig"]})
    assert provider.sign_message("hello") == "0xsig"
    assert wallet.requests[-1] == ("personal_sign", ["0x68656c6c6f", PAYER])


def test_http_transport_returns_result():
    session = MagicMock(spec=requests.Session)
    session.post.return_value = create_response(200, {"jsonrpc": "2.0", "id": 1, "result": "0x1"})
    transport = HttpJsonRpcTransport("http://wallet.local", session=session, timeout=5)

    assert transport("eth_chainId", []) == "0x1"
    session.post.assert_called_once_with(
        "http://wallet.local",
        json={"jsonrpc": "2.0", "id": 1, "method": "eth_chainId", "params": []},
        timeout=5,
    )


def test_http_transport_raises_rpc_errors():
    session = MagicMock(spec=requests.Session)
    session.post.return_value = create_response(
        200,
        {"jsonrpc": "2.0", "id": 1, "error": {"code": 4001, "message": "User rejected"}},
    )
    transport = HttpJsonRpcTransport("http://wallet.local", session=session)

    with pytest.raises(ProviderRpcError) as exc_info:
        transport("eth_sendTransaction", [{}])
    assert exc_info.value.code == 4001
    assert exc_info.value.message == "User rejected"
