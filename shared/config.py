"""
ElfLens Configuration Management
=================================

Centralized configuration for the ElfLens toolkit using Python dataclasses
and TOML-based persistence.

Every section of the TOML file maps onto one dataclass.  Missing keys fall
back to the dataclass defaults and unknown keys are ignored, so a partial
``config.toml`` is always valid.

References:
    - PEP 681 -- Data Class Transforms (2022).
    - TOML v1.0.0 Specification. https://toml.io/en/v1.0.0
"""

from __future__ import annotations

import sys
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Any

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib  # type: ignore[no-redef]


# ---------------------------------------------------------------------------
# Default configuration file path relative to the project root
# ---------------------------------------------------------------------------
_DEFAULT_CONFIG_PATH: Path = Path(__file__).resolve().parent.parent / "config.toml"


# ========================== Tool-Specific Configs ==========================


@dataclass(frozen=False, slots=True)
class HexViewConfig:
    """Configuration for the hex-dump view.

    Controls how many bytes are shown per row, how bytes are grouped
    within a row, and whether printable / non-zero bytes are coloured.
    """

    column_count: int = 16
    group_count: int = 2
    use_color: bool = True


@dataclass(frozen=False, slots=True)
class DisasmConfig:
    """Configuration for header parsing and disassembly."""

    code_section: str = ".text"
    max_file_size: int = 52_428_800  # 50 MiB


# =========================== Global Settings ===============================


@dataclass(frozen=False, slots=True)
class GlobalConfig:
    """Global settings: logging, editor integration and version."""

    log_level: str = "INFO"
    log_file: str = ""
    log_json: bool = False
    editor: str = ""
    debug: bool = False
    version: str = "1.0.0"


# =========================== Master Config =================================


@dataclass(frozen=False, slots=True)
class LensConfig:
    """Master configuration aggregating all ElfLens settings.

    Usage:
        >>> config = LensConfig.load()                  # from default path
        >>> config = LensConfig.load("custom.toml")     # from custom path
        >>> print(config.hexview.column_count)
        16
    """

    global_settings: GlobalConfig = field(default_factory=GlobalConfig)
    hexview: HexViewConfig = field(default_factory=HexViewConfig)
    disasm: DisasmConfig = field(default_factory=DisasmConfig)

    # ------------------------------------------------------------------ #
    #  TOML Loading
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path | None = None) -> LensConfig:
        """Load configuration from a TOML file.

        If *path* is ``None`` the loader looks for ``config.toml`` in the
        project root and silently uses defaults when it is absent.

        Args:
            path: Filesystem path to a TOML configuration file.

        Returns:
            A fully-populated :class:`LensConfig` instance.

        Raises:
            FileNotFoundError: If *path* was given explicitly and does
                not exist.
            tomllib.TOMLDecodeError: If the file is not valid TOML.
        """
        config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH

        if not config_path.exists():
            if path is not None:
                raise FileNotFoundError(
                    f"Configuration file not found: {config_path}"
                )
            return cls()

        with open(config_path, "rb") as fh:
            raw: dict[str, Any] = tomllib.load(fh)

        return cls(
            global_settings=cls._build_section(GlobalConfig, raw.get("global", {})),
            hexview=cls._build_section(HexViewConfig, raw.get("hexview", {})),
            disasm=cls._build_section(DisasmConfig, raw.get("disasm", {})),
        )

    # ------------------------------------------------------------------ #
    #  Serialisation helpers
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialise the entire configuration tree to a plain dictionary."""
        return asdict(self)

    # ------------------------------------------------------------------ #
    #  Internal helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _build_section(cls: type, data: dict[str, Any]) -> Any:
        """Instantiate a dataclass *cls* using only the keys it declares."""
        valid_keys = {f.name for f in cls.__dataclass_fields__.values()}  # type: ignore[attr-defined]
        filtered = {k: v for k, v in data.items() if k in valid_keys}
        return cls(**filtered)


# ========================= Module-level convenience ========================

def get_config(path: str | Path | None = None) -> LensConfig:
    """Module-level convenience wrapper around :meth:`LensConfig.load`.

    Caches the result so that repeated calls share one instance; passing
    an explicit *path* always reloads.
    """
    if not hasattr(get_config, "_cached") or path is not None:
        get_config._cached = LensConfig.load(path)  # type: ignore[attr-defined]
    return get_config._cached  # type: ignore[attr-defined]
