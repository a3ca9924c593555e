import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from zine.exceptions import ConfigError

SETTINGS_FILE = ".zine.toml"


def _deep_merge(destination: dict[str, Any], source: dict[str, Any]) -> dict[str, Any]:
    """Merge source into destination, with source values overwriting."""
    for key, value in source.items():
        if isinstance(value, Mapping) and key in destination and isinstance(destination[key], Mapping):
            destination[key] = _deep_merge(dict(destination.get(key, {})), dict(value))
        else:
            destination[key] = value
    return destination


class BuildSettings(BaseModel):
    """Settings for the build orchestrator."""

    output_dir: Path = Field(default=Path("build"), description="Output directory, relative to the site root")
    concurrency: int = Field(default=8, ge=1, description="Articles processed at the same time")
    feed_limit: int = Field(default=20, ge=1, description="Maximum number of feed entries")
    drafts: bool = Field(default=False, description="Render unpublished articles into listings")


class PreviewSettings(BaseModel):
    """Settings for the link-preview cache."""

    enabled: bool = Field(default=True, description="Fetch previews over the network")
    cache_dir: Path = Field(default=Path(".zine-cache/previews"), description="Disk cache directory")
    timeout: float = Field(default=10.0, gt=0, description="HTTP timeout in seconds")
    success_ttl: float = Field(default=7 * 24 * 3600, gt=0, description="Lifetime of a successful record")
    failure_ttl: float = Field(default=3600, gt=0, description="Lifetime of a failed record")
    max_concurrency: int = Field(default=8, ge=1, description="Simultaneous fetches across URLs")
    user_agent: str = Field(default="zine-preview/1.0 (+https://github.com/zineland/zine)")


class ServeSettings(BaseModel):
    """Settings for the development server."""

    host: str = "127.0.0.1"
    port: int = 3000
    ws_port: int = 3001
    debounce: float = Field(default=0.3, ge=0, description="Seconds to wait for more changes")


class ZineSettings(BaseSettings):
    """Runtime settings for zine.

    Content lives in ``zine.toml``. These settings only tune how a build runs.
    Supports environment variable overrides with the pattern
    ZINE_SECTION__KEY (e.g., ZINE_PREVIEW__TIMEOUT).
    """

    site_root: Path = Field(default_factory=Path.cwd)
    build: BuildSettings = Field(default_factory=BuildSettings)
    preview: PreviewSettings = Field(default_factory=PreviewSettings)
    serve: ServeSettings = Field(default_factory=ServeSettings)

    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="ZINE_",
        env_nested_delimiter="__",
    )

    @property
    def abs_output_dir(self) -> Path:
        return self._resolve(self.build.output_dir)

    @property
    def abs_cache_dir(self) -> Path:
        return self._resolve(self.preview.cache_dir)

    def _resolve(self, path: Path) -> Path:
        if path.is_absolute():
            return path
        return self.site_root / path

    @classmethod
    def load(cls, site_root: Path | None = None) -> "ZineSettings":
        """Load settings from .zine.toml and environment variables.

        Priority (highest to lowest):
        1. Environment variables (ZINE_SECTION__KEY)
        2. Settings file (.zine.toml in the site root)
        3. Defaults
        """
        root_path = site_root if site_root is not None else Path.cwd()
        settings_file = root_path / SETTINGS_FILE

        file_settings: dict[str, Any] = {}
        if settings_file.is_file():
            try:
                with settings_file.open("rb") as f:
                    file_settings = tomllib.load(f)
            except tomllib.TOMLDecodeError as exc:
                msg = f"Invalid TOML in {settings_file}: {exc}"
                raise ConfigError(msg) from exc

        try:
            env_settings = cls().model_dump(exclude_unset=True)
            merged = _deep_merge(file_settings, env_settings)
            merged["site_root"] = root_path
            return cls.model_validate(merged)
        except ValidationError as exc:
            msg = f"Invalid zine settings: {exc}"
            raise ConfigError(msg) from exc
