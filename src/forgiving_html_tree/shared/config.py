"""Configuration for tree construction.

A :class:`BuilderConfig` is immutable, so one instance can be shared by any
number of concurrent build runs.
"""

import json
from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, Iterable, List, Optional

# Elements that never receive children and never expect a close tag.
DEFAULT_VOID_ELEMENTS: FrozenSet[str] = frozenset({
    "area", "base", "basefont", "br", "hr", "iframe",
    "input", "img", "link", "meta", "param",
})

# Elements whose text children keep the undecoded source text.
DEFAULT_RAW_TEXT_ELEMENTS: FrozenSet[str] = frozenset({"textarea"})


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError, ValueError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


def _normalize_names(names: Iterable[str], field_name: str) -> FrozenSet[str]:
    if isinstance(names, str):
        raise ConfigValidationError(
            f"{field_name} must be a collection of names, not a string",
            field_name=field_name,
        )
    normalized = set()
    for name in names:
        if not isinstance(name, str) or not name.strip():
            raise ConfigValidationError(
                f"{field_name} entries must be non-empty strings",
                field_name=field_name,
            )
        normalized.add(name.strip().lower())
    return frozenset(normalized)


@dataclass(frozen=True)
class BuilderConfig:
    """Configuration for document assembly.

    Attributes:
        void_elements: Element names that are never pushed onto the open stack
        raw_text_elements: Element names whose text children keep raw source
        enable_diagnostics: Record a DiagnosticEntry for every recovery
        correlation_id: Default correlation ID for runs using this config
    """

    void_elements: FrozenSet[str] = DEFAULT_VOID_ELEMENTS
    raw_text_elements: FrozenSet[str] = DEFAULT_RAW_TEXT_ELEMENTS
    enable_diagnostics: bool = True
    correlation_id: Optional[str] = None

    name: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        """Validate and normalize configuration values."""
        # frozen dataclass: normalized values go through object.__setattr__
        object.__setattr__(
            self, "void_elements",
            _normalize_names(self.void_elements, "void_elements"),
        )
        object.__setattr__(
            self, "raw_text_elements",
            _normalize_names(self.raw_text_elements, "raw_text_elements"),
        )
        if "html" in self.void_elements:
            raise ConfigValidationError(
                "html cannot be a void element",
                field_name="void_elements",
                suggestions=["Remove 'html' from void_elements"],
            )
        overlap = self.void_elements & self.raw_text_elements
        if overlap:
            raise ConfigValidationError(
                f"Elements cannot be both void and raw text: {sorted(overlap)}",
                field_name="raw_text_elements",
            )
        if not isinstance(self.enable_diagnostics, bool):
            raise ConfigValidationError(
                "enable_diagnostics must be a bool",
                field_name="enable_diagnostics",
            )

    def is_void(self, name: str) -> bool:
        """Check whether a sanitized element name is void."""
        return name in self.void_elements

    def keeps_raw_text(self, name: str) -> bool:
        """Check whether text inside the named element keeps its raw source."""
        return name.lower() in self.raw_text_elements

    def override(self, **kwargs: Any) -> "BuilderConfig":
        """Create a new configuration with specific overrides."""
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {
            "void_elements": sorted(self.void_elements),
            "raw_text_elements": sorted(self.raw_text_elements),
            "enable_diagnostics": self.enable_diagnostics,
            "correlation_id": self.correlation_id,
            "name": self.name,
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BuilderConfig":
        """Create configuration from dictionary.

        Unknown keys are rejected so that typos do not silently fall back to
        defaults.
        """
        known = set(cls.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigValidationError(
                f"Unknown configuration keys: {unknown}",
                suggestions=[f"Valid keys: {sorted(known)}"],
            )
        return cls(**data)

    @classmethod
    def from_json(cls, json_str: str) -> "BuilderConfig":
        """Create configuration from JSON string."""
        data = json.loads(json_str)
        if not isinstance(data, dict):
            raise ConfigValidationError("Configuration JSON must be an object")
        return cls.from_dict(data)

    # Preset factory methods
    @classmethod
    def default(cls) -> "BuilderConfig":
        """Create the standard configuration."""
        return cls(name="default")

    @classmethod
    def lean(cls) -> "BuilderConfig":
        """Create a configuration that skips diagnostic collection."""
        return cls(enable_diagnostics=False, name="lean")
