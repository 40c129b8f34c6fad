from __future__ import annotations

from pydantic import Field

try:
    from pydantic_settings import BaseSettings, SettingsConfigDict
except Exception as e:  # pragma: no cover
    raise RuntimeError(
        "pydantic-settings is required. Install with: pip install pydantic-settings"
    ) from e


class MetaLogSettings(BaseSettings):
    """Unified configuration for the deductive database.

    Environment variables are prefixed with METALOG_.
    """

    model_config = SettingsConfigDict(env_prefix="METALOG_", extra="ignore")

    # --- Core ---
    log_level: str = Field(default="INFO", description="Python logging level")

    # --- Engines present in a MetaLogDb ---
    enable_prolog: bool = Field(default=True)
    enable_datalog: bool = Field(default=True)
    enable_rdf: bool = Field(default=True)

    # --- Non-termination guards ---
    max_resolution_steps: int = Field(default=100_000, ge=1, description="Clause attempts per query")
    max_fixed_point_iterations: int = Field(default=1000, ge=1)
    max_entailment_iterations: int = Field(default=1000, ge=1)

    # --- RDF ---
    iri_base: str = Field(default="http://example.org/", description="Prefix for IRIs minted from facts")


settings = MetaLogSettings()
