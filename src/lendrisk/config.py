import tomllib
from pathlib import Path

import tomlkit
from pydantic import HttpUrl, WebsocketUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lendrisk.logging import logger
from lendrisk.types.aliases import ChainId

CONFIG_DIR = Path.home() / ".config" / "lendrisk"
CONFIG_FILE = CONFIG_DIR / "config.toml"


class Settings(BaseSettings):
    model_config = SettingsConfigDict()

    rpc: dict[
        ChainId,
        HttpUrl | WebsocketUrl | Path,
    ]

    @field_validator("rpc", mode="after")
    def validate_paths(
        cls,  # noqa: N805
        rpc_dict: dict[ChainId, HttpUrl | WebsocketUrl | Path],
    ) -> dict[ChainId, HttpUrl | WebsocketUrl | Path]:
        """
        Validate the endpoints.

        This will convert all file paths to an absolute reference, leaving HTTP and WS URLs as-is.
        """

        return {
            chain_id: endpoint.expanduser().absolute() if isinstance(endpoint, Path) else endpoint
            for chain_id, endpoint in rpc_dict.items()
        }


def load_config_from_file(config_path: Path) -> Settings:
    return Settings.model_validate(
        tomllib.loads(
            config_path.read_text(),
        ),
    )


def save_config_to_file(config: Settings, config_path: Path = CONFIG_FILE) -> None:
    config_path.write_text(
        tomlkit.dumps(
            config.model_dump(mode="json"),
        ),
    )


if not CONFIG_DIR.exists():
    CONFIG_DIR.mkdir(parents=True, exist_ok=True)
    logger.info(f"Created a configuration directory at {CONFIG_DIR}.")

if CONFIG_FILE.exists():
    settings = load_config_from_file(CONFIG_FILE)
else:
    settings = Settings(rpc={})
    save_config_to_file(settings)
    logger.info(f"Created a configuration file at {CONFIG_FILE}.")
