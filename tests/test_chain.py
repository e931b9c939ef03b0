import threading

import pytest

from minimalaccount.account import abi
from minimalaccount.account.minimal_account import MinimalAccount
from minimalaccount.blockchain.core.chain import Blockchain
from minimalaccount.blockchain.core.events import CALL_FORWARDED, OWNERSHIP_TRANSFERRED, EventBus, Log
from minimalaccount.blockchain.observability import export_metrics
from minimalaccount.blockchain.storage.db import StorageDB
from minimalaccount.protocol.crypto.addresses import address_from_private

from helpers import ACCOUNT_ADDRESS, RECORDER_ADDRESS, STRANGER_KEY, Recorder


# --- Storage ---
def test_storage_db(tmp_path):
    db = StorageDB(str(tmp_path / "state.db"))
    db.set_many({"acc:a": "1", "acc:b": "2"})
    db.set_many({"acc:a": "3"})

    assert db.get_state("acc:a") == "3"
    assert db.get_state("acc:b") == "2"
    assert db.get_state("missing") is None
    db.close()



def test_state_survives_restart(tmp_path, config, owner):
    db_path = str(tmp_path / "chain.db")
    new_owner = address_from_private(STRANGER_KEY)

    chain = Blockchain(db_path, config=config, bus=EventBus())
    chain.deploy(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner), balance=1000)
    assert chain.call(owner, ACCOUNT_ADDRESS, data=abi.encode_transfer_ownership(new_owner)).success
    chain.close()

    chain = Blockchain(db_path, config=config, bus=EventBus())
    # Constructor arguments only matter on deploy; attach keeps stored state
    account = chain.attach(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner))
    assert account.owner(chain.state) == new_owner
    assert account.get_entry_point(chain.state) == config.entry_point
    assert chain.balance_of(ACCOUNT_ADDRESS) == 1000
    chain.close()


def test_reverted_call_is_not_persisted(tmp_path, config, owner, stranger):
    db_path = str(tmp_path / "chain.db")
    chain = Blockchain(db_path, config=config, bus=EventBus())
    chain.deploy(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner))
    assert not chain.call(stranger, ACCOUNT_ADDRESS, data=abi.encode_transfer_ownership(stranger)).success
    chain.close()

    chain = Blockchain(db_path, config=config, bus=EventBus())
    assert chain.get_storage(ACCOUNT_ADDRESS, "owner") == owner
    chain.close()


def test_deploy_twice_rejected(chain, account, config, owner):
    with pytest.raises(ValueError):
        chain.deploy(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner))


def test_static_call_has_no_effect(chain, recorder, owner):
    result = chain.static_call(owner, RECORDER_ADDRESS, b"\x01")
    assert result.success
    assert result.return_data == b"recorded"
    assert chain.get_storage(RECORDER_ADDRESS, "calls") is None


# --- Events ---
def test_event_bus():
    bus = EventBus()
    received = []

    def listener(**kw):
        received.append(kw)

    def broken(**kw):
        raise RuntimeError("listener failure")

    bus.subscribe("Ping", broken)
    bus.subscribe("Ping", listener)
    bus.publish(Log(address="0x01", name="Ping", data={"n": 1}))
    bus.publish(Log(address="0x01", name="Pong", data={"n": 2}))
    assert received == [{"address": "0x01", "n": 1}]

    bus.unsubscribe("Ping", listener)
    bus.publish(Log(address="0x01", name="Ping", data={"n": 3}))
    assert len(received) == 1

    bus.clear()
    assert bus.listeners == {}


def test_only_committed_logs_are_published(chain, account, reverter, recorder, config):
    seen = []
    chain.events.subscribe(CALL_FORWARDED, lambda **kw: seen.append(kw))
    chain.events.subscribe("Touched", lambda **kw: seen.append(kw))

    chain.call(config.entry_point, ACCOUNT_ADDRESS, data=abi.encode_execute(reverter.address, 0, b""))
    assert seen == []
    assert chain.state.logs == []

    result = chain.call(config.entry_point, ACCOUNT_ADDRESS, data=abi.encode_execute(RECORDER_ADDRESS, 0, b"\xab"))
    assert [log.name for log in result.logs] == ["Recorded", CALL_FORWARDED]
    assert seen == [{"address": ACCOUNT_ADDRESS, "dest": RECORDER_ADDRESS, "value": 0, "selector": "ab"}]


def test_deploy_publishes_initial_owner(config, owner):
    bus = EventBus()
    seen = []
    bus.subscribe(OWNERSHIP_TRANSFERRED, lambda **kw: seen.append(kw))
    chain = Blockchain(config=config, bus=bus)
    chain.deploy(MinimalAccount(ACCOUNT_ADDRESS, config.entry_point, owner))
    assert seen == [{"address": ACCOUNT_ADDRESS, "previous_owner": None, "new_owner": owner}]


# --- Concurrency ---
def test_concurrent_calls_are_serialized(chain, owner):
    chain.deploy(Recorder(RECORDER_ADDRESS))
    chain.fund(owner, 10_000)

    def worker():
        for _ in range(50):
            assert chain.call(owner, RECORDER_ADDRESS, value=1).success

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert chain.get_storage(RECORDER_ADDRESS, "calls") == "200"
    assert chain.balance_of(RECORDER_ADDRESS) == 200
    assert chain.balance_of(owner) == 10_000 - 200


# --- Metrics ---
def test_metrics_export(chain, account, recorder, config):
    chain.call(config.entry_point, ACCOUNT_ADDRESS, data=abi.encode_execute(RECORDER_ADDRESS, 0, b""))
    output = export_metrics().decode()
    assert "minimalaccount_forwarded_calls_total" in output
    assert 'status="success"' in output
