"""Configuration management for PharmaScan."""

from .loader import ConfigLoader
from .settings import (
    AppSettings,
    ScannerSettings,
    SinkSettings,
    StateSettings,
    WorkerSettings,
    get_settings,
    reload_settings,
)
from .types import (
    ClickStep,
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
    ExtractAttribute,
    ExtractionConfig,
    ExtractionRule,
    FieldType,
    GeolocationConfig,
    NavigateStep,
    NavigationStep,
    NetworkConfig,
    ScanTarget,
    SelectorConfig,
    StepAction,
    TypeStep,
    ValueSource,
    WaitForResponseStep,
    WaitForSelectorStep,
)

__all__ = [
    "AppSettings",
    "ScannerSettings",
    "SinkSettings",
    "StateSettings",
    "WorkerSettings",
    "get_settings",
    "reload_settings",
    "ConfigLoader",
    "ConfigError",
    "ConfigLoadError",
    "ConfigValidationError",
    "ScanTarget",
    "SelectorConfig",
    "NetworkConfig",
    "GeolocationConfig",
    "ExtractionConfig",
    "ExtractionRule",
    "FieldType",
    "NavigationStep",
    "NavigateStep",
    "WaitForSelectorStep",
    "TypeStep",
    "ClickStep",
    "WaitForResponseStep",
    "ExtractAttribute",
    "StepAction",
    "ValueSource",
]
