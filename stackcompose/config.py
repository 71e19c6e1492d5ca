from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

DEFAULT_SERVICE_FILES = Path(__file__).resolve().parent / "services" / "files"
FAILURE_POLICIES = ("abort", "skip")


class ConfigError(RuntimeError):
    """Raised when settings or option files cannot be parsed."""


def load_document(path: str | Path) -> Dict[str, Any]:
    """Read a mapping from a JSON file, falling back to YAML."""

    raw_text = Path(path).read_text()
    try:
        data = json.loads(raw_text)
    except json.JSONDecodeError:
        try:
            data = yaml.safe_load(raw_text)
        except yaml.YAMLError as exc:
            raise ConfigError(f"{path} is neither valid JSON nor YAML") from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a top-level mapping")
    return data


@dataclass
class Settings:
    """Runtime settings for a pipeline run."""

    service_files: Path = field(default_factory=lambda: DEFAULT_SERVICE_FILES)
    output_dir: Path = Path("build")
    compose_version: str = "3.6"
    failure_policy: str = "abort"

    def __post_init__(self) -> None:
        self.service_files = Path(self.service_files)
        self.output_dir = Path(self.output_dir)
        if self.failure_policy not in FAILURE_POLICIES:
            raise ConfigError(
                f"failure_policy must be one of {', '.join(FAILURE_POLICIES)}, got {self.failure_policy!r}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Settings":
        defaults = cls()
        return cls(
            service_files=Path(data.get("service_files", defaults.service_files)),
            output_dir=Path(data.get("output_dir", defaults.output_dir)),
            compose_version=str(data.get("compose_version", defaults.compose_version)),
            failure_policy=data.get("failure_policy", defaults.failure_policy),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> "Settings":
        return cls.from_dict(load_document(path))

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        environ = os.environ if environ is None else environ
        overrides = {
            key: environ[env_name]
            for key, env_name in (
                ("service_files", "STACKCOMPOSE_SERVICE_FILES"),
                ("output_dir", "STACKCOMPOSE_OUTPUT_DIR"),
                ("compose_version", "STACKCOMPOSE_COMPOSE_VERSION"),
                ("failure_policy", "STACKCOMPOSE_FAILURE_POLICY"),
            )
            if environ.get(env_name)
        }
        return cls.from_dict(overrides)

    def service_path(self, service_name: str, *parts: str) -> Path:
        return self.service_files.joinpath(service_name, *parts)
