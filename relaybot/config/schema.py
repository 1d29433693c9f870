"""Configuration schema using Pydantic."""

from pathlib import Path
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotConfig(BaseModel):
    """Core bot behaviour."""
    login: str = "relaybot"
    prefix: str = "&"  # Command prefix character
    send_interval_seconds: float = 1.0  # Global outbound cadence
    expensive_delay_seconds: float = 5.0  # Duration of the "expensive" command


class HelixConfig(BaseModel):
    """Remote identity lookup (Helix-style users API)."""
    client_id: str = ""
    client_secret: str = ""
    access_token: str = ""  # Generated from client credentials when empty
    api_base: str = "https://api.twitch.tv/helix"
    token_url: str = "https://id.twitch.tv/oauth2/token"
    timeout_seconds: float = 10.0


class ModerationConfig(BaseModel):
    """Banphrase moderation screen."""
    enabled: bool = True  # Questionable replies are withheld when disabled
    url: str = "https://forsen.tv/api/v1/banphrases/test"
    timeout_seconds: float = 5.0


class SupinicConfig(BaseModel):
    """Bot-activity heartbeat on the Supinic bot list."""
    enabled: bool = False
    user_id: str = ""
    api_key: str = ""
    url: str = "https://supinic.com/api/bot-program/bot/active"
    interval_seconds: float = 1800.0
    timeout_seconds: float = 10.0


class StoreConfig(BaseModel):
    """JSON store location."""
    path: str = "~/.relaybot/store.json"
    history_limit: int = 500  # Messages kept per channel
    history_flush_every: int = 20  # Logged messages between history writes


class ConsoleConfig(BaseModel):
    """Identity used by the console transport."""
    user_id: int = 1
    user_login: str = "console"
    channel: str = "console"
    permission: int = 2  # Level given to the console user on first run


class Config(BaseSettings):
    """Root configuration for relaybot."""
    model_config = SettingsConfigDict(
        env_prefix="RELAYBOT_",
        env_nested_delimiter="__",
    )

    bot: BotConfig = Field(default_factory=BotConfig)
    helix: HelixConfig = Field(default_factory=HelixConfig)
    moderation: ModerationConfig = Field(default_factory=ModerationConfig)
    supinic: SupinicConfig = Field(default_factory=SupinicConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    console: ConsoleConfig = Field(default_factory=ConsoleConfig)

    @property
    def store_path(self) -> Path:
        """Get expanded store path."""
        return Path(self.store.path).expanduser()

    @property
    def helix_enabled(self) -> bool:
        """Whether credentials for the identity lookup are configured."""
        return bool(self.helix.client_id and (self.helix.access_token or self.helix.client_secret))

    @property
    def supinic_enabled(self) -> bool:
        """Whether the activity heartbeat should run."""
        return bool(self.supinic.enabled and self.supinic.user_id and self.supinic.api_key)
