"""Configuration loading for cmdforge (.cmdforge.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".cmdforge.yml"
DEFAULT_BUILD_TAG = "cmdforge"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class DiscoverOptions:
    """Settings for directory discovery."""

    start_dir: str = "."
    build_tag: str = DEFAULT_BUILD_TAG
    multi_package: bool = False
    skip_hidden_dirs: bool = True

    @property
    def effective_start_dir(self) -> str:
        return self.start_dir or "."

    @property
    def effective_tag(self) -> str:
        return self.build_tag or DEFAULT_BUILD_TAG


@dataclass(frozen=True)
class GenerateOptions:
    """Settings for wrapper generation in a single directory."""

    dir: str = "."
    build_tag: str = ""
    only_tagged: bool = False

    @property
    def effective_dir(self) -> str:
        return self.dir or "."

    @property
    def filter_tag(self) -> str:
        """Tag used to select input files when ``only_tagged`` is set."""
        return self.build_tag or DEFAULT_BUILD_TAG

    @property
    def directive_tag(self) -> str:
        """Tag written into generated files; empty when none is needed."""
        if self.build_tag:
            return self.build_tag
        return self.filter_tag if self.only_tagged else ""


@dataclass
class GenerateConfig:
    """The ``generate`` section of .cmdforge.yml."""

    dir: Optional[Path] = None
    only_tagged: bool = True


@dataclass
class CmdforgeConfig:
    """Represents the settings defined in .cmdforge.yml."""

    root: Path
    start_dir: Optional[Path] = None
    build_tag: str = DEFAULT_BUILD_TAG
    multi_package: bool = False
    skip_hidden_dirs: bool = True
    generate: GenerateConfig = field(default_factory=GenerateConfig)

    def discover_options(self) -> DiscoverOptions:
        start = self.start_dir or self.root
        return DiscoverOptions(
            start_dir=str(start),
            build_tag=self.build_tag,
            multi_package=self.multi_package,
            skip_hidden_dirs=self.skip_hidden_dirs,
        )

    def generate_options(self, directory: str | Path | None = None) -> GenerateOptions:
        target = directory or self.generate.dir or self.start_dir or self.root
        return GenerateOptions(
            dir=str(target),
            build_tag=self.build_tag,
            only_tagged=self.generate.only_tagged,
        )


def load_config(config_path: Path) -> CmdforgeConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return CmdforgeConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    start_dir_str = _as_str(data.get("start_dir"))
    build_tag = _as_str(data.get("build_tag")) or DEFAULT_BUILD_TAG
    _check_tag(build_tag)

    generate_data = _as_dict(data.get("generate"))
    generate = GenerateConfig()
    if generate_data:
        dir_str = _as_str(generate_data.get("dir"))
        generate.dir = root / dir_str if dir_str else None
        only_tagged = _as_bool(generate_data.get("only_tagged"))
        if only_tagged is not None:
            generate.only_tagged = only_tagged

    multi_package = _as_bool(data.get("multi_package"))
    skip_hidden = _as_bool(data.get("skip_hidden_dirs"))

    return CmdforgeConfig(
        root=root,
        start_dir=root / start_dir_str if start_dir_str else None,
        build_tag=build_tag,
        multi_package=bool(multi_package),
        skip_hidden_dirs=True if skip_hidden is None else skip_hidden,
        generate=generate,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _check_tag(tag: str) -> None:
    if any(char.isspace() for char in tag):
        raise ConfigError(f"build_tag must not contain whitespace: {tag!r}")


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    return str(value) if isinstance(value, (str, int, float)) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None
