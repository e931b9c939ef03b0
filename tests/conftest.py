import pytest

from minimalaccount.account.minimal_account import MinimalAccount
from minimalaccount.blockchain.core.chain import Blockchain
from minimalaccount.blockchain.core.events import EventBus
from minimalaccount.protocol.config.params import NETWORKS
from minimalaccount.protocol.crypto.addresses import address_from_private
from minimalaccount.protocol.types.user_op import PackedUserOperation

from helpers import ACCOUNT_ADDRESS, RECORDER_ADDRESS, REVERTER_ADDRESS, STRANGER_KEY, Recorder, Reverter


@pytest.fixture
def config():
    return NETWORKS["local"]


@pytest.fixture
def chain(config):
    chain = Blockchain(config=config, bus=EventBus())
    yield chain
    chain.close()


@pytest.fixture
def owner_key(config):
    return bytes.fromhex(config.local_priv_key)


@pytest.fixture
def owner(owner_key):
    return address_from_private(owner_key)


@pytest.fixture
def stranger():
    return address_from_private(STRANGER_KEY)


@pytest.fixture
def account(chain, config, owner):
    return chain.deploy(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner), balance=10**18)


@pytest.fixture
def recorder(chain):
    return chain.deploy(Recorder(RECORDER_ADDRESS))


@pytest.fixture
def reverter(chain):
    return chain.deploy(Reverter(REVERTER_ADDRESS))


@pytest.fixture
def unsigned_op():
    return PackedUserOperation(sender=ACCOUNT_ADDRESS, nonce=0, call_data=b"\x01\x02")
