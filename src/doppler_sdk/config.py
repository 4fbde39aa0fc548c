import tomllib
from pathlib import Path

import tomlkit
from pydantic import BaseModel, Field, PositiveInt, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from doppler_sdk.checksum_cache import get_checksum_address
from doppler_sdk.logging import logger

CONFIG_DIR = Path.home() / ".config" / "doppler_sdk"
CONFIG_FILE = CONFIG_DIR / "config.toml"


class MiningSettings(BaseModel):
    max_iterations: PositiveInt = 1_000_000
    show_progress: bool = False


class TransactionSettings(BaseModel):
    create_gas_limit: PositiveInt = 13_500_000
    start_time_offset: int = Field(default=30, ge=0)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="DOPPLER_SDK_",
        env_nested_delimiter="__",
    )

    mining: MiningSettings = MiningSettings()
    transactions: TransactionSettings = TransactionSettings()
    module_overrides: dict[int, dict[str, str]] = {}

    @field_validator("module_overrides", mode="after")
    def checksum_module_overrides(
        cls,  # noqa: N805
        overrides: dict[int, dict[str, str]],
    ) -> dict[int, dict[str, str]]:
        """
        Normalize all override addresses to their checksummed form.
        """

        return {
            chain_id: {role: get_checksum_address(address) for role, address in roles.items()}
            for chain_id, roles in overrides.items()
        }


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    # TOML tables require string keys
    config_dict = config.model_dump()
    config_dict["module_overrides"] = {
        str(chain_id): roles for chain_id, roles in config_dict["module_overrides"].items()
    }
    config_path.write_text(
        tomlkit.dumps(config_dict),
    )


if not CONFIG_DIR.exists():
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created a configuration directory at {CONFIG_DIR}.")

if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
else:
    settings = Settings()
    save_config_to_file(settings)
    logger.info(f"Created a configuration file at {CONFIG_FILE}.")
