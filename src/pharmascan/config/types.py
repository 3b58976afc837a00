"""Type definitions for the configuration system.

Besides the configuration error hierarchy this module holds the typed model
of a per-site scan recipe (``ScanTarget``). Recipes are authored as YAML with
camelCase keys; every model accepts both the camelCase alias and the Python
field name and ignores keys it does not know about.
"""

from enum import Enum
from typing import Annotated, Any, Literal, Optional, Union
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..utils.logging import get_structured_logger

logger = get_structured_logger(__name__)


class ConfigError(Exception):
    """Base exception for configuration-related errors."""

    pass


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    pass


class ConfigLoadError(ConfigError):
    """Exception raised when configuration loading fails."""

    pass


class _RecipeModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class StepAction(str, Enum):
    """Kinds of navigation steps a recipe can declare."""

    NAVIGATE = "navigate"
    WAIT_FOR_SELECTOR = "wait_for_selector"
    TYPE = "type"
    CLICK = "click"
    WAIT_FOR_RESPONSE = "wait_for_response"


# Recipes spell actions as camelCase or snake_case; both collapse to one key.
_ACTION_SPELLINGS = {
    action.value.replace("_", ""): action.value for action in StepAction
}


def normalize_action(action: Any) -> Any:
    """Map a recipe's action spelling onto the canonical ``StepAction`` value."""
    if not isinstance(action, str):
        return action
    key = action.strip().lower().replace("_", "").replace("-", "")
    return _ACTION_SPELLINGS.get(key, action)


class ValueSource(str, Enum):
    """Where a ``type`` step takes the text it types."""

    SEARCH_TERM = "searchTerm"


class ExtractAttribute(_RecipeModel):
    """Read ``attribute`` from a clicked element and store it under ``name``."""

    name: Optional[str] = None
    attribute: Optional[str] = None


class _Step(_RecipeModel):
    comment: Optional[str] = None
    prompt: Optional[str] = None

    @property
    def kind(self) -> StepAction:
        return StepAction(self.action)


class NavigateStep(_Step):
    action: Literal["navigate"] = "navigate"
    url: Optional[str] = None


class WaitForSelectorStep(_Step):
    action: Literal["wait_for_selector"] = "wait_for_selector"
    selector: Optional[str] = None
    timeout_ms: Optional[int] = None


class TypeStep(_Step):
    action: Literal["type"] = "type"
    selector: Optional[str] = None
    value_source: Optional[ValueSource] = Field(default=None, alias="valueFromInput")
    clear_first: bool = False

    @field_validator("value_source", mode="before")
    @classmethod
    def _unknown_source_is_none(cls, v):
        if v is None or isinstance(v, ValueSource):
            return v
        try:
            return ValueSource(v)
        except ValueError:
            logger.debug("Unknown type step value source", value_from_input=v)
            return None

    @field_validator("clear_first", mode="before")
    @classmethod
    def _none_is_false(cls, v):
        return False if v is None else v


class ClickStep(_Step):
    action: Literal["click"] = "click"
    selector: Optional[str] = None
    extract_attribute: Optional[ExtractAttribute] = None


class WaitForResponseStep(_Step):
    action: Literal["wait_for_response"] = "wait_for_response"
    match_pattern: Optional[str] = Field(default=None, alias="matchRegex")
    timeout_ms: Optional[int] = None


NavigationStep = Annotated[
    Union[
        NavigateStep,
        WaitForSelectorStep,
        TypeStep,
        ClickStep,
        WaitForResponseStep,
    ],
    Field(discriminator="action"),
]


class FieldType(str, Enum):
    """How a field value is read from its element."""

    TEXT = "text"
    HREF = "href"


class ExtractionRule(_RecipeModel):
    selector: str = ""
    type: FieldType = FieldType.TEXT
    description: Optional[str] = None

    @field_validator("type", mode="before")
    @classmethod
    def _unknown_type_is_text(cls, v):
        if isinstance(v, FieldType):
            return v
        if isinstance(v, str) and v.strip().lower() == FieldType.HREF.value:
            return FieldType.HREF
        return FieldType.TEXT


class ExtractionConfig(_RecipeModel):
    """Declarative row extraction: one ``ExtractionRule`` per named field."""

    iterate_rows: Optional[str] = None
    fields: dict[str, ExtractionRule] = Field(default_factory=dict)


class SelectorConfig(_RecipeModel):
    title: Optional[str] = None
    price: Optional[str] = None
    availability: Optional[str] = None
    no_results: Optional[str] = None
    input: Optional[str] = None
    input_fallback: Optional[str] = None
    results: Optional[str] = None
    result_item: Optional[str] = None
    results_table: Optional[str] = None
    result_row: Optional[str] = None
    suggestion_id_attribute: Optional[str] = None
    wait_for_response_regex: Optional[str] = None
    persist_availability_api_json: Optional[bool] = None
    scan_timeout_ms: Optional[int] = None


class NetworkConfig(_RecipeModel):
    wait_for_response_regex: Optional[str] = None
    persist_availability_api_json: Optional[bool] = None


class GeolocationConfig(_RecipeModel):
    enable: bool = False
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    origin: Optional[str] = None

    @property
    def is_usable(self) -> bool:
        return self.enable and self.latitude is not None and self.longitude is not None


class MetadataConfig(_RecipeModel):
    requires_javascript: Optional[bool] = None
    spa: Optional[bool] = None


def strip_regex_delimiters(pattern: Optional[str]) -> Optional[str]:
    """Turn ``/expr/`` into ``expr``; blank patterns become ``None``.

    A pattern that is only slashes would match every URL and is dropped too.
    """
    if not pattern or not pattern.strip():
        return None
    pattern = pattern.strip()
    if len(pattern) >= 2 and pattern.startswith("/") and pattern.endswith("/"):
        pattern = pattern[1:-1].strip()
    if not pattern.strip("/"):
        return None
    return pattern


class ScanTarget(_RecipeModel):
    """Immutable scan recipe for one pharmacy site."""

    id: str
    name: str = ""
    search_url_template: Optional[str] = None
    rate_limit_seconds: float = 2.0
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    navigation_flow: list[NavigationStep] = Field(default_factory=list)
    extraction: Optional[ExtractionConfig] = None
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    geolocation: Optional[GeolocationConfig] = None
    metadata: MetadataConfig = Field(default_factory=MetadataConfig)

    @field_validator("selectors", "network", "metadata", mode="before")
    @classmethod
    def _none_is_empty(cls, v):
        return {} if v is None else v

    @field_validator("navigation_flow", mode="before")
    @classmethod
    def _normalize_actions(cls, v):
        if v is None:
            return []
        steps = []
        for step in v:
            if isinstance(step, dict) and "action" in step:
                step = {**step, "action": normalize_action(step["action"])}
            steps.append(step)
        return steps

    def search_url(self, search_term: str) -> str:
        """Build the search URL; without a template the term itself is the URL."""
        if not self.search_url_template:
            return search_term
        return self.search_url_template.replace("{query}", quote(search_term, safe=""))

    def step_timeout_ms(self, step_timeout_ms: Optional[int], default_ms: int) -> int:
        """Resolve a wait timeout: step, then target, then process default."""
        if step_timeout_ms is not None:
            return step_timeout_ms
        if self.selectors.scan_timeout_ms is not None:
            return self.selectors.scan_timeout_ms
        return default_ms

    def response_pattern(self, step_pattern: Optional[str] = None) -> Optional[str]:
        """Resolve the URL regex used to capture an availability response."""
        for candidate in (
            step_pattern,
            self.network.wait_for_response_regex,
            self.selectors.wait_for_response_regex,
        ):
            pattern = strip_regex_delimiters(candidate)
            if pattern:
                return pattern
        return None

    @property
    def persist_raw_response(self) -> bool:
        return bool(
            self.network.persist_availability_api_json
            or self.selectors.persist_availability_api_json
        )

    @property
    def has_results_table(self) -> bool:
        return bool(self.selectors.results_table and self.selectors.result_row)

    @property
    def has_typeahead(self) -> bool:
        return bool(self.selectors.input)

    @property
    def has_row_extraction(self) -> bool:
        return bool(self.extraction and self.extraction.iterate_rows)
