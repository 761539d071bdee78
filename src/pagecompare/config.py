"""Configuration settings for pagecompare."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Comparison configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Browser settings
    browser_headless: bool = Field(
        default=True,
        description="Run browser in headless mode",
    )
    navigation_timeout: int = Field(
        default=30,
        gt=0,
        description="Maximum time to wait for a page to settle, in seconds",
    )
    settle_time: float = Field(
        default=1.0,
        ge=0,
        description="Extra wait after network idle so animations can finish",
    )
    full_page: bool = Field(default=True, description="Capture the full scrollable page")

    # Image comparison
    pixel_sensitivity: float = Field(
        default=0.1,
        ge=0,
        le=1,
        description="Per-pixel colour distance (0-1) above which a pixel counts as different",
    )
    include_antialiased: bool = Field(
        default=False,
        description="Count antialiased pixels as differences",
    )
    diff_threshold: float = Field(
        default=0.1,
        ge=0,
        description="Percentage of differing pixels above which a change is significant",
    )

    # Output locations
    output_dir: Path = Field(
        default=Path("visual-comparison"),
        description="Directory for screenshots and scan results",
    )
    artifact_base_url: str = Field(
        default="../artifacts/visual-comparison",
        description="Prefix for screenshot links in the visual report",
    )
    visual_report_path: Path = Field(default=Path("visual-comparison-report.md"))
    accessibility_report_path: Path = Field(default=Path("accessibility-report.md"))

    # Accessibility scan
    axe_script_url: str = Field(
        default="https://cdnjs.cloudflare.com/ajax/libs/axe-core/4.9.1/axe.min.js",
        description="axe-core build injected into the page under test",
    )
    axe_tags: list[str] = Field(
        default=["wcag2a", "wcag2aa", "wcag21a", "wcag21aa"],
        description="axe rule tags to run",
    )
    max_examples: int = Field(
        default=3,
        ge=0,
        description="HTML snippets shown per new violation in the report",
    )


# Global settings instance
settings = Settings()
