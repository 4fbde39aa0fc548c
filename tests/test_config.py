from pathlib import Path

import pytest

from doppler_sdk import connection_manager, get_web3, set_web3
from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.config import Settings, load_config_from_file, save_config_to_file
from doppler_sdk.exceptions import DopplerValueError

from .conftest import CHAIN_ID, FakeWeb3


class DisconnectedWeb3(FakeWeb3):
    def is_connected(self) -> bool:
        return False


def test_disconnected_web3():
    w3 = DisconnectedWeb3()
    with pytest.raises(DopplerValueError, match="Web3 instance is not connected."):
        set_web3(w3)

    with pytest.raises(DopplerValueError, match="Web3 instance is not connected."):
        connection_manager.register_web3(w3)

    assert connection_manager.connections == {}


def test_legacy_interface(fake_w3: FakeWeb3):
    with pytest.raises(DopplerValueError, match="A default Web3 instance has not been registered."):
        get_web3()

    set_web3(fake_w3)
    assert get_web3() is fake_w3


def test_connection_manager(fake_w3: FakeWeb3):
    with pytest.raises(DopplerValueError):
        _ = connection_manager.default_chain_id

    set_web3(fake_w3)
    assert connection_manager.default_chain_id == CHAIN_ID
    assert connection_manager.get_web3(CHAIN_ID) is fake_w3

    with pytest.raises(DopplerValueError):
        connection_manager.get_web3(69)


def test_register_additional_chain(fake_w3: FakeWeb3):
    set_web3(fake_w3)

    other_w3 = FakeWeb3(chain_id=1)
    connection_manager.register_web3(other_w3)
    assert connection_manager.get_web3(1) is other_w3
    assert connection_manager.default_chain_id == CHAIN_ID


def test_settings_defaults():
    settings = Settings()
    assert settings.mining.max_iterations == 1_000_000
    assert settings.mining.show_progress is False
    assert settings.transactions.create_gas_limit == 13_500_000
    assert settings.transactions.start_time_offset == 30
    assert settings.module_overrides == {}


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DOPPLER_SDK_MINING__MAX_ITERATIONS", "5000")
    monkeypatch.setenv("DOPPLER_SDK_TRANSACTIONS__START_TIME_OFFSET", "120")

    settings = Settings()
    assert settings.mining.max_iterations == 5000
    assert settings.transactions.start_time_offset == 120


def test_settings_reject_invalid_values():
    with pytest.raises(ValueError):
        Settings.model_validate({"mining": {"max_iterations": 0}})
    with pytest.raises(ValueError):
        Settings.model_validate({"transactions": {"start_time_offset": -1}})


def test_config_file_round_trip(tmp_path: Path):
    airlock = "0xa000000000000000000000000000000000000001"
    settings = Settings.model_validate(
        {
            "mining": {"max_iterations": 250_000, "show_progress": True},
            "module_overrides": {int(CHAIN_ID): {"airlock": airlock}},
        }
    )
    assert settings.module_overrides[CHAIN_ID]["airlock"] == get_checksum_address(airlock)

    config_path = tmp_path / "config.toml"
    save_config_to_file(settings, config_path)

    loaded = load_config_from_file(config_path)
    assert loaded == settings
    assert loaded.mining.max_iterations == 250_000
    assert loaded.mining.show_progress is True
    assert loaded.module_overrides == {int(CHAIN_ID): {"airlock": get_checksum_address(airlock)}}
