"""Stub generator options, from keyword arguments, the environment or a protoc plugin parameter."""
from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Mapping

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}

# short names accepted in protoc plugin parameters
_GENERATOR_ALIASES = {
    "client": "generate_client",
    "server": "generate_server",
    "runtime": "runtime_module",
}


def parse_bool(key: str, value: str | bool) -> bool:
    if isinstance(value, bool):
        return value
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"{key}: expected a boolean, got {value!r}")


@dataclass
class GeneratorConfig:
    """Stub generator options: which artifacts to emit, where the runtime lives, optional formatter command."""

    generate_client: bool = True
    generate_server: bool = True
    runtime_module: str = "protwirp"
    formatter: str | None = None

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any], *, strict: bool = True) -> GeneratorConfig:
        """Build from a name -> value mapping; unknown names raise ValueError when ``strict``."""
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for raw_key, value in values.items():
            key = _GENERATOR_ALIASES.get(raw_key, raw_key)
            if key not in known:
                if strict:
                    raise ValueError(f"unknown generator option {raw_key!r}")
                continue
            if key in ("generate_client", "generate_server"):
                kwargs[key] = parse_bool(raw_key, value)
            elif key == "formatter":
                kwargs[key] = value or None
            else:
                kwargs[key] = value
        return cls(**kwargs)

    @classmethod
    def from_env(cls, prefix: str = "PROTWIRP_") -> GeneratorConfig:
        """PROTWIRP_GENERATE_CLIENT, PROTWIRP_GENERATE_SERVER, PROTWIRP_RUNTIME_MODULE, PROTWIRP_FORMATTER."""
        values = {
            key[len(prefix):].lower(): value
            for key, value in os.environ.items()
            if key.startswith(prefix)
        }
        return cls.from_mapping(values, strict=False)

    @classmethod
    def from_parameter(cls, parameter: str) -> GeneratorConfig:
        """Parse a protoc plugin parameter: ``client=false,runtime=pkg.twirp,formatter=black -q -``."""
        values: dict[str, str] = {}
        for item in parameter.split(","):
            item = item.strip()
            if not item:
                continue
            key, sep, value = item.partition("=")
            values[key.strip()] = value.strip() if sep else "true"
        return cls.from_mapping(values)
