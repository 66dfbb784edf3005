"""
Configuration Service
Centralized configuration management for the application.

Secrets and endpoints are read at call time from the process environment,
falling back to Streamlit secrets when running inside the dashboard.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import streamlit as st

from .error_handling_service import ConfigurationMissingError


@dataclass(frozen=True, repr=False)
class AzureOpenAISettings:
    """Resolved Azure OpenAI connection settings."""
    endpoint: str
    api_key: str
    deployment: str
    api_version: str
    timeout: float

    @property
    def chat_completions_url(self) -> str:
        return (
            f"{self.endpoint}/openai/deployments/{self.deployment}"
            f"/chat/completions?api-version={self.api_version}"
        )

    def __repr__(self) -> str:
        return f"AzureOpenAISettings(deployment={self.deployment!r}, api_version={self.api_version!r})"


class ConfigService:
    """Service for managing application configuration."""

    # Azure OpenAI configuration
    AZURE_ENDPOINT_KEY: str = "AZURE_OPENAI_ENDPOINT"
    AZURE_API_KEY_KEY: str = "AZURE_OPENAI_API_KEY"
    AZURE_DEPLOYMENT_KEYS: tuple[str, ...] = ("AZURE_OPENAI_DEPLOYMENT_GPT5", "AZURE_OPENAI_DEPLOYMENT")
    AZURE_API_VERSION_KEY: str = "AZURE_OPENAI_API_VERSION"
    AZURE_TIMEOUT_KEY: str = "AZURE_OPENAI_TIMEOUT"
    AZURE_DEFAULT_TIMEOUT: float = 60.0
    MAX_COMPLETION_TOKENS: int = 1000

    # Access gate
    PASSCODE_KEY: str = "BASKETBRIDGE_PASSCODE"

    # Dataset
    DATA_PATH_KEY: str = "BASKETBRIDGE_DATA_PATH"
    DEFAULT_DATA_PATH: Path = Path(__file__).resolve().parent.parent / "data" / "grocery_summary.json"

    # Scenario configuration
    SCENARIO_MIN_RATE: float = 0.0
    SCENARIO_MAX_RATE: float = 100.0
    SCENARIO_SLIDER_MIN: int = 0
    SCENARIO_SLIDER_MAX: int = 20
    SCENARIO_DEFAULT_RATE: int = 5

    # UI/Theme Configuration
    CHART_COLORS: list[str] = [
        "#a3a3a3", "#22d3ee", "#818cf8", "#34d399",
        "#f472b6", "#fbbf24", "#60a5fa", "#f97316"
    ]
    CHART_PAPER_BG: str = 'rgba(0,0,0,0)'
    CHART_PLOT_BG: str = 'rgba(0,0,0,0)'
    CHART_FONT_COLOR: str = '#e5e5e5'
    CHART_GRID_COLOR: str = '#262626'
    CHART_TICK_COLOR: str = '#a3a3a3'
    CHART_LEGEND_COLOR: str = '#e5e5e5'

    # Number Format Configuration
    DEFAULT_DECIMAL_PLACES: int = 2
    DEFAULT_PERCENT_DECIMAL_PLACES: int = 1

    # Logging
    LOG_LEVEL_KEY: str = "LOG_LEVEL"
    DEFAULT_LOG_LEVEL: str = "INFO"

    @classmethod
    def get_setting(cls, name: str) -> Optional[str]:
        """
        Read a setting from the environment, then Streamlit secrets.

        Blank values count as absent.
        """
        value = os.getenv(name)
        if value is None or not value.strip():
            try:
                value = st.secrets.get(name, None)
            except Exception:
                value = None
        if value is None:
            return None
        value = str(value).strip()
        return value or None

    @classmethod
    def get_azure_openai_settings(cls) -> AzureOpenAISettings:
        """
        Resolve the Azure OpenAI settings required for a model call.

        Raises:
            ConfigurationMissingError: If any required value is absent
        """
        endpoint = cls.get_setting(cls.AZURE_ENDPOINT_KEY)
        api_key = cls.get_setting(cls.AZURE_API_KEY_KEY)
        deployment = None
        for key in cls.AZURE_DEPLOYMENT_KEYS:
            deployment = cls.get_setting(key)
            if deployment:
                break
        api_version = cls.get_setting(cls.AZURE_API_VERSION_KEY)

        missing = [
            name for name, value in (
                (cls.AZURE_ENDPOINT_KEY, endpoint),
                (cls.AZURE_API_KEY_KEY, api_key),
                (cls.AZURE_DEPLOYMENT_KEYS[0], deployment),
                (cls.AZURE_API_VERSION_KEY, api_version),
            ) if not value
        ]
        if missing:
            raise ConfigurationMissingError(missing)

        return AzureOpenAISettings(
            endpoint=endpoint.rstrip("/"),
            api_key=api_key,
            deployment=deployment,
            api_version=api_version,
            timeout=cls.get_timeout(),
        )

    @classmethod
    def get_timeout(cls) -> float:
        """Transport timeout in seconds for the model call."""
        raw = cls.get_setting(cls.AZURE_TIMEOUT_KEY)
        if raw is None:
            return cls.AZURE_DEFAULT_TIMEOUT
        try:
            timeout = float(raw)
        except ValueError:
            return cls.AZURE_DEFAULT_TIMEOUT
        return timeout if timeout > 0 else cls.AZURE_DEFAULT_TIMEOUT

    @classmethod
    def get_board_passcode(cls) -> Optional[str]:
        """Get the shared board passcode, or None when the gate is unconfigured."""
        return cls.get_setting(cls.PASSCODE_KEY)

    @classmethod
    def get_data_path(cls) -> Path:
        """Path of the metrics JSON resource loaded at start-up."""
        override = cls.get_setting(cls.DATA_PATH_KEY)
        return Path(override) if override else cls.DEFAULT_DATA_PATH

    @classmethod
    def configure_logging(cls) -> None:
        """Configure root logging once for an entry point."""
        level_name = (cls.get_setting(cls.LOG_LEVEL_KEY) or cls.DEFAULT_LOG_LEVEL).upper()
        logging.basicConfig(
            level=getattr(logging, level_name, logging.INFO),
            format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        )

    @classmethod
    def get_chart_layout(cls) -> dict:
        """
        Get Plotly chart layout configuration.

        Returns:
            Plotly Layout with the dashboard's dark theme
        """
        import plotly.graph_objects as go

        return go.Layout(
            paper_bgcolor=cls.CHART_PAPER_BG,
            plot_bgcolor=cls.CHART_PLOT_BG,
            font=dict(color=cls.CHART_FONT_COLOR),
            xaxis=dict(
                showgrid=True,
                gridcolor=cls.CHART_GRID_COLOR,
                tickfont=dict(color=cls.CHART_TICK_COLOR),
                title_font=dict(color=cls.CHART_FONT_COLOR)
            ),
            yaxis=dict(
                showgrid=True,
                gridcolor=cls.CHART_GRID_COLOR,
                tickfont=dict(color=cls.CHART_TICK_COLOR),
                title_font=dict(color=cls.CHART_FONT_COLOR)
            ),
            legend=dict(font=dict(color=cls.CHART_LEGEND_COLOR)),
            colorway=cls.CHART_COLORS,
        )


# Singleton instance
_config_service = ConfigService()

def get_config() -> ConfigService:
    """Get the configuration service instance."""
    return _config_service
