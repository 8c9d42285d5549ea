"""
Read the application configuration.

Values come, highest priority first, from constructor arguments, environment
variables prefixed with ``LOCAL_LLM_``, a ``.env`` file and finally the JSON
file ``.local-coder-config.json`` in the working directory.
"""

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

DEFAULT_CONFIG_FILE = ".local-coder-config.json"
DEFAULT_MODEL = "local-model"


class Settings(BaseSettings):
    """Connection, model and runtime limits for a local-coder process.

    Attributes:
        base_url: root of the OpenAI-compatible API (LM Studio by default)
        api_key: key sent to the server; local servers accept anything
        model: model used in single-phase mode
        dual_mode: run the enhancer/executor pipeline by default
        thinking_model: model of the enhancer phase
        executing_model: model of the executor phase
        shell_timeout: seconds before a shell command is killed
        approval_timeout: seconds a server approval waits before denying
        display_limit: characters of tool output sent to observers
        port: port of the web host
        log_level: level of the root logger configured by the CLI
    """

    base_url: str = "http://localhost:1234/v1"
    api_key: str = "lm-studio"
    model: str = DEFAULT_MODEL
    dual_mode: bool = False
    thinking_model: str = DEFAULT_MODEL
    executing_model: str = DEFAULT_MODEL
    shell_timeout: float = Field(default=120.0, gt=0)
    approval_timeout: float = Field(default=300.0, gt=0)
    display_limit: int = Field(default=5000, ge=0)
    port: int = Field(default=3000, ge=0, le=65535)
    log_level: str = "WARNING"

    model_config = SettingsConfigDict(
        json_file=DEFAULT_CONFIG_FILE,
        env_prefix="LOCAL_LLM_",
        env_file=".env",
        extra="ignore",
        validate_assignment=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            JsonConfigSettingsSource(settings_cls),
        )

    def use_model(self, model: str) -> None:
        """Use one model for single mode and both dual-phase roles."""
        self.model = model
        self.thinking_model = model
        self.executing_model = model

    def public_view(self) -> dict:
        return {
            "model": self.model,
            "baseURL": self.base_url,
            "dualMode": self.dual_mode,
            "thinkingModel": self.thinking_model,
            "executingModel": self.executing_model,
        }
