"""Global configuration for siggen.

This module provides centralized configuration management with support for
environment variables and sensible defaults.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


class SiggenConfig(BaseSettings):
    """siggen configuration settings.

    Values can be overridden via environment variables with SIGGEN_ prefix.
    Example: SIGGEN_ANNOTATION_MARKER=gen: overrides annotation_marker.
    """

    # Signature environment bootstrap
    signature_paths: list[Path] = Field(
        default_factory=list,
        description="Signature files or directories preloaded into the environment",
    )
    load_core: bool = Field(
        default=True,
        description="Preload the bundled core declarations (Object, Class, ...)",
    )

    # Generation
    annotation_marker: str = Field(
        default="siggen:",
        min_length=1,
        description="Marker that identifies a generation template inside an annotation",
    )

    # File discovery
    program_glob: str = Field(
        default="**/*.rb",
        description="Glob used by batch analysis to discover program files",
    )
    signature_glob: str = Field(
        default="**/*.rbs",
        description="Glob used to discover signature files inside directories",
    )

    # Labels used when callers do not name their inputs
    default_signature_name: str = Field(
        default="a.rbs",
        description="Label attached to signature text added without a name",
    )
    default_program_name: str = Field(
        default="a.rb",
        description="Label attached to program text analyzed without a name",
    )

    model_config = {
        "env_prefix": "SIGGEN_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }


@lru_cache
def get_config() -> SiggenConfig:
    """Get cached configuration instance.

    Returns:
        SiggenConfig singleton instance.
    """
    return SiggenConfig()


def reload_config() -> SiggenConfig:
    """Reload configuration (clears cache).

    Returns:
        Fresh SiggenConfig instance.
    """
    get_config.cache_clear()
    return get_config()
