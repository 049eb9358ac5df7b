"""
Configuration Schemas.

Pydantic models defining the expected structure of each YAML config file.
Used by AppConfig to validate configuration at load time. If a YAML file
has missing keys, wrong types, or unknown fields, a clear ValidationError
is raised at startup instead of a cryptic KeyError deep in application code.

Each top-level class corresponds to one file in config/settings/:
    ApplicationSchema  → application.yaml
    DatabaseSchema     → database.yaml
    LoggingSchema      → logging.yaml
    SecuritySchema     → security.yaml
    BoardSchema        → board.yaml
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class _StrictBase(BaseModel):
    """Base with extra='forbid' so unknown YAML keys are caught immediately."""

    model_config = ConfigDict(extra="forbid")


# =============================================================================
# application.yaml
# =============================================================================


class ServerSchema(_StrictBase):
    host: str
    port: int


class CorsSchema(_StrictBase):
    origins: list[str]


class ApplicationSchema(_StrictBase):
    name: str
    version: str
    description: str
    environment: str
    debug: bool
    api_prefix: str
    server: ServerSchema
    cors: CorsSchema


# =============================================================================
# database.yaml
# =============================================================================


class DatabaseSchema(_StrictBase):
    url: str
    echo: bool
    create_tables_on_startup: bool


# =============================================================================
# logging.yaml
# =============================================================================


class ConsoleHandlerSchema(_StrictBase):
    enabled: bool


class FileHandlerSchema(_StrictBase):
    enabled: bool
    path: str
    max_bytes: int
    backup_count: int


class HandlersSchema(_StrictBase):
    console: ConsoleHandlerSchema
    file: FileHandlerSchema


class LoggingSchema(_StrictBase):
    level: str
    format: str
    handlers: HandlersSchema


# =============================================================================
# security.yaml
# =============================================================================


class JwtSchema(_StrictBase):
    algorithm: str
    audience: str
    access_token_expire_minutes: int


class NonceSchema(_StrictBase):
    action: str
    lifetime_seconds: int = Field(gt=1)


class SecuritySchema(_StrictBase):
    jwt: JwtSchema
    nonce: NonceSchema


# =============================================================================
# board.yaml
# =============================================================================


class CapabilitiesSchema(_StrictBase):
    """Capability names consulted by the access checks."""

    board_access: str
    view_all_admins: str
    view_editors_and_above: str
    edit_own: str
    edit_others: str
    delete_own: str
    delete_others: str


class BoardSchema(_StrictBase):
    default_title: str
    color_presets: list[str]
    max_position_cache_ttl_seconds: float = Field(ge=0)
    capabilities: CapabilitiesSchema
    roles: dict[str, list[str]]

    @field_validator("color_presets")
    @classmethod
    def _presets_are_hex(cls, value: list[str]) -> list[str]:
        from modules.backend.core.colors import normalize_hex_color

        normalized = []
        for preset in value:
            color = normalize_hex_color(preset)
            if color is None:
                raise ValueError(f"invalid colour preset: {preset!r}")
            normalized.append(color)
        return normalized
