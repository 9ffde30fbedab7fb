"""Configuration loading for rsbuild (.rsbuild.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".rsbuild.yml"
_DEFAULT_PLATFORM_DIR = "platform"

# Header folders of an SDK platform, in the order the compiler searches them.
_PLATFORM_INCLUDE_DIRS = ("renderscript/clang-include", "renderscript/include")


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass
class CompilerConfig:
    """External compiler location and include paths."""

    path: str = "llvm-rs-cc"
    include_paths: List[str] = field(
        default_factory=lambda: _platform_includes(_DEFAULT_PLATFORM_DIR)
    )
    label: str = "RenderScript"


@dataclass
class SourcesConfig:
    """Where buildable sources live and how they are recognised."""

    dirs: List[str] = field(default_factory=lambda: ["src"])
    extension: str = ".rs"
    exclude_paths: List[str] = field(default_factory=list)


@dataclass
class OutputConfig:
    """Output folders handed to the compiler."""

    gen_dir: str = "gen"
    res_dir: str = "res/raw"
    dep_dir: str = "bin"
    dep_extension: str = ".d"


@dataclass
class RsBuildConfig:
    """Represents the settings defined in .rsbuild.yml."""

    root: Path
    compiler: CompilerConfig = field(default_factory=CompilerConfig)
    sources: SourcesConfig = field(default_factory=SourcesConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    verbose: bool = False
    state_dir: str = ".rsbuild"

    @property
    def source_dirs(self) -> List[Path]:
        return [self.root / name for name in self.sources.dirs]

    @property
    def gen_dir(self) -> Path:
        return self.root / self.output.gen_dir

    @property
    def res_dir(self) -> Path:
        return self.root / self.output.res_dir

    @property
    def dep_dir(self) -> Path:
        return self.root / self.output.dep_dir

    @property
    def state_path(self) -> Path:
        return self.root / self.state_dir / "state.json"

    def include_paths(self) -> List[Path]:
        """Include paths with relative entries resolved against the root."""
        return [self.root / entry for entry in self.compiler.include_paths]


def load_config(config_path: Path) -> RsBuildConfig:
    """Load configuration from disk."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return RsBuildConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    compiler = CompilerConfig()
    compiler_data = _as_dict(data.get("compiler"))
    if compiler_data:
        compiler.path = _as_str(compiler_data.get("path")) or compiler.path
        platform_dir = _as_str(compiler_data.get("platform_dir"))
        if platform_dir:
            compiler.include_paths = _platform_includes(platform_dir)
        if "include_paths" in compiler_data:
            compiler.include_paths = _as_str_list(compiler_data.get("include_paths"))
        if len(compiler.include_paths) != 2:
            raise ConfigError(
                "compiler.include_paths must list exactly two directories "
                f"(clang headers, then RenderScript headers); got {len(compiler.include_paths)}"
            )
        compiler.label = _as_str(compiler_data.get("label")) or compiler.label

    sources = SourcesConfig()
    sources_data = _as_dict(data.get("sources"))
    if sources_data:
        dirs = _as_str_list(sources_data.get("dirs"))
        if dirs:
            sources.dirs = dirs
        extension = _as_str(sources_data.get("extension"))
        if extension:
            sources.extension = _normalise_extension(extension)
        sources.exclude_paths = _as_str_list(sources_data.get("exclude_paths"))

    output = OutputConfig()
    output_data = _as_dict(data.get("output"))
    if output_data:
        output.gen_dir = _as_str(output_data.get("gen_dir")) or output.gen_dir
        output.res_dir = _as_str(output_data.get("res_dir")) or output.res_dir
        output.dep_dir = _as_str(output_data.get("dep_dir")) or output.dep_dir
        dep_extension = _as_str(output_data.get("dep_extension"))
        if dep_extension:
            output.dep_extension = _normalise_extension(dep_extension)

    build_data = _as_dict(data.get("build"))
    verbose = _as_bool(build_data.get("verbose")) or False
    state_dir = _as_str(build_data.get("state_dir")) or ".rsbuild"

    return RsBuildConfig(
        root=root,
        compiler=compiler,
        sources=sources,
        output=output,
        verbose=verbose,
        state_dir=state_dir,
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _platform_includes(platform_dir: str) -> List[str]:
    base = platform_dir.rstrip("/")
    return [f"{base}/{folder}" for folder in _PLATFORM_INCLUDE_DIRS]


def _normalise_extension(value: str) -> str:
    return value if value.startswith(".") else f".{value}"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


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


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
