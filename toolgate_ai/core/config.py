"""
Configuration Settings.

This module defines the runtime configuration using Pydantic's BaseSettings.
Values are loaded from environment variables and an optional ``.env`` file
without explicit dotenv loading.

The auto-approval settings record itself is not part of this module: it is
owned by the host session and handed to the core through a
``SettingsProvider`` (see ``toolgate_ai.agent_core.policy.provider``).
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RepetitionConfig(BaseModel):
    """Ceilings used by the tool repetition detector."""

    default_limit: int = Field(
        default=3,
        ge=0,
        alias="TOOL_REPETITION_LIMIT",
        description="Identical consecutive tool calls allowed before the run is halted (0 = unlimited)",
    )
    mcp_limit: int = Field(
        default=50,
        ge=0,
        alias="MCP_TOOL_REPETITION_LIMIT",
        description="Ceiling applied to use_mcp_tool / access_mcp_resource (0 = unlimited)",
    )
    response_history_size: int = Field(
        default=10,
        ge=1,
        alias="TOOL_RESPONSE_HISTORY_SIZE",
        description="Capacity of the per-run tool response ring buffer",
    )

    model_config = {"populate_by_name": True}


class McpImageLimits(BaseModel):
    """Limits applied when MCP tool results carry images."""

    max_images_per_response: int = Field(
        default=20, ge=0, alias="MCP_MAX_IMAGES_PER_RESPONSE", description="Maximum images kept per MCP response"
    )
    max_image_size_mb: float = Field(
        default=10.0, gt=0, alias="MCP_MAX_IMAGE_SIZE_MB", description="Maximum size of a single MCP image in MB"
    )

    model_config = {"populate_by_name": True}


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env``."""

    log_level: str = Field(default="INFO", alias="TOOLGATE_AI_LOG_LEVEL", description="Root console log level")
    log_format: str = Field(default="detailed", alias="LOG_FORMAT", description="simple, detailed or json")
    log_file_dir: str = Field(default="logs", alias="LOG_FILE_DIR", description="Directory for the log file")
    enable_file_logging: bool = Field(
        default=False, alias="ENABLE_FILE_LOGGING", description="Write DEBUG logs to <log_file_dir>/toolgate_ai.log"
    )

    repetition: RepetitionConfig = Field(default_factory=RepetitionConfig)
    mcp_images: McpImageLimits = Field(default_factory=McpImageLimits)

    command_output_character_limit: int = Field(
        default=50_000,
        ge=0,
        alias="COMMAND_OUTPUT_CHARACTER_LIMIT",
        description="Characters of command output kept in the tool result (0 = unlimited)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        populate_by_name=True,
        extra="ignore",
    )


settings = Settings()
