from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_PACKAGE_DIR = Path(__file__).resolve().parent


class Settings(BaseSettings):
    """
    Central configuration for paths, fetch politeness and the optional AI fallback.
    Environment variables use the PAYRATES_ prefix (e.g. PAYRATES_OUTPUT_FILE).
    """

    model_config = SettingsConfigDict(
        env_prefix="PAYRATES_",
        extra="ignore",
    )

    project_root: Path = Field(
        default_factory=lambda: Path(__file__).resolve().parents[1]
    )

    data_dir: Path = Field(default=Path("data"))
    output_file: Path = Field(default=Path("data") / "data.json")
    urls_file: Path = Field(default=_PACKAGE_DIR / "scrape" / "urls.yaml")
    schema_file: Optional[Path] = Field(default=Path("schema") / "dataset.schema.json")

    # fetch layer
    polite_delay_ms: int = Field(default=100, ge=0)
    request_timeout_s: float = Field(default=30.0, gt=0)
    user_agent: str = "payrates scraper (respectful fetch)"

    # AI fallback
    use_ai: bool = False
    force_ai: bool = False
    # pages whose tables the DOM heuristics are known to misread
    ai_url_patterns: List[str] = Field(
        default_factory=lambda: ["as.html", "gl.html", "/ex.html", "co-rcmp.html", "sv.html", "hp.html", "hs.html"]
    )
    ai_confidence_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    llm_provider: str = "mock"
    llm_model: Optional[str] = None

    @field_validator("data_dir", "output_file", "urls_file", "schema_file", mode="before")
    @classmethod
    def _coerce_path(cls, v):
        # Accept strings from env and coerce; allow Path passthrough.
        if v is None:
            return v
        if isinstance(v, str):
            s = v.strip()
            if not s:
                return None
            return Path(s).expanduser()
        if isinstance(v, Path):
            return v.expanduser()
        return v

    def model_post_init(self, __context) -> None:
        # Resolve relative paths against project_root
        if not self.data_dir.is_absolute():
            self.data_dir = (self.project_root / self.data_dir).resolve()
        if not self.output_file.is_absolute():
            self.output_file = (self.project_root / self.output_file).resolve()
        if not self.urls_file.is_absolute():
            self.urls_file = (self.project_root / self.urls_file).resolve()
        if self.schema_file is not None and not self.schema_file.is_absolute():
            self.schema_file = (self.project_root / self.schema_file).resolve()

    def ai_enabled_for(self, url: str) -> bool:
        if self.force_ai:
            return True
        return self.use_ai and any(p in url for p in self.ai_url_patterns)


# Lazy singleton
_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
