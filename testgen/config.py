"""`.testgen.yml` settings: model runner, generation defaults and file selection."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml

from .analysis.selector import DEFAULT_MAX_FILES
from .errors import ConfigError
from .models import GenerationConfig

CONFIG_FILENAME = ".testgen.yml"
DEFAULT_MAX_FILE_SIZE = 100_000


def _text(value: Any) -> Optional[str]:
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        return None
    text = str(value).strip()
    return text or None


def _number(kind: Callable[[Any], Any]) -> Callable[[Any], Any]:
    """Coerce numbers and numeric strings with `kind`; booleans and junk become None."""

    def coerce(value: Any) -> Any:
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            return None
        try:
            return kind(value)
        except ValueError:
            return None

    return coerce


_as_int = _number(int)
_as_float = _number(float)


@dataclass
class LLMConfig:
    """The `llm` section; unset values defer to environment variables."""

    runner: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    request_timeout: Optional[float] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> Optional["LLMConfig"]:
        """Return None when the section sets nothing usable."""
        coercers: Dict[str, Callable[[Any], Any]] = {
            "temperature": _as_float,
            "request_timeout": _as_float,
            "max_tokens": _as_int,
        }
        values = {
            item.name: coercers.get(item.name, _text)(data.get(item.name)) for item in fields(cls)
        }
        if all(value is None for value in values.values()):
            return None
        return cls(**values)


@dataclass
class SelectionConfig:
    """Bounds applied when picking files for analysis."""

    max_files: int = DEFAULT_MAX_FILES
    max_file_size: int = DEFAULT_MAX_FILE_SIZE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SelectionConfig":
        selection = cls()
        max_files = _as_int(data.get("max_files"))
        if max_files is not None:
            selection.max_files = max(0, max_files)
        max_file_size = _as_int(data.get("max_file_size"))
        if max_file_size is not None and max_file_size > 0:
            selection.max_file_size = max_file_size
        return selection


@dataclass
class TestGenSettings:
    """Everything `.testgen.yml` can configure for one repository."""

    __test__ = False

    root: Path
    llm: Optional[LLMConfig] = None
    generation: GenerationConfig = field(default_factory=GenerationConfig)
    selection: SelectionConfig = field(default_factory=SelectionConfig)
    exclude_paths: List[str] = field(default_factory=list)
    templates_dir: Optional[Path] = None


def load_config(config_path: Path) -> TestGenSettings:
    """Load `.testgen.yml` for a repository directory (or a file inside it).

    A missing file yields defaults. Malformed YAML, an unreadable file or a
    non-mapping document raises ConfigError; individual bad values fall back
    to their defaults.
    """
    config_file = locate_config(Path(config_path))
    root = config_file.parent
    if not config_file.exists():
        return TestGenSettings(root=root)

    document = _parse(config_file)

    def section(name: str) -> Mapping[str, Any]:
        value = document.get(name)
        return value if isinstance(value, Mapping) else {}

    templates_dir = _text(document.get("templates_dir"))
    return TestGenSettings(
        root=root,
        llm=LLMConfig.from_mapping(section("llm")),
        generation=GenerationConfig.from_mapping(section("generation")),
        selection=SelectionConfig.from_mapping(section("selection")),
        exclude_paths=_patterns(document.get("exclude_paths")),
        templates_dir=root / templates_dir if templates_dir else None,
    )


def locate_config(path: Path) -> Path:
    """Resolve a repository path or a file beneath it to its config file."""
    path = path.expanduser().resolve()
    if path.is_dir():
        return path / CONFIG_FILENAME
    if path.name == CONFIG_FILENAME:
        return path
    return path.parent / CONFIG_FILENAME


def _parse(config_file: Path) -> Mapping[str, Any]:
    try:
        document = yaml.safe_load(config_file.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Failed to read {config_file.name}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {config_file.name}: {exc}") from exc
    if document is None:
        return {}
    if not isinstance(document, Mapping):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")
    return document


def _patterns(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        return [text for text in map(_text, value) if text]
    text = _text(value)
    return [text] if text else []


__all__ = [
    "CONFIG_FILENAME",
    "DEFAULT_MAX_FILE_SIZE",
    "LLMConfig",
    "SelectionConfig",
    "TestGenSettings",
    "load_config",
    "locate_config",
]
