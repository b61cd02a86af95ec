"""Configuration models for seqgraph."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class GraphConfig(BaseModel):
    """Configuration for the graph directory location."""

    path: str = Field(
        ...,
        description="Path to the graph directory"
    )

    @field_validator('path')
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Validate graph path exists and is a directory."""
        path = Path(v).expanduser()
        if not path.exists():
            raise ValueError(
                f"Graph path does not exist: {path}\n"
                f"Please create the directory or update config.yaml"
            )
        if not path.is_dir():
            raise ValueError(
                f"Graph path is not a directory: {path}\n"
                f"Please provide a valid directory path"
            )
        return str(path)

    model_config = {"frozen": True}


class ParsingConfig(BaseModel):
    """Configuration for batch parsing."""

    workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Number of threads used to parse documents"
    )

    model_config = {"frozen": True}


class CacheConfig(BaseModel):
    """Configuration for the parsed page cache."""

    enabled: bool = Field(
        default=True,
        description="Reuse parsed pages whose source file is unchanged"
    )

    directory: Optional[str] = Field(
        default=None,
        description="Cache directory (default: ~/.cache/seqgraph)"
    )

    def cache_dir(self) -> Path:
        """Resolved cache directory."""
        if self.directory:
            return Path(self.directory).expanduser()
        return Path.home() / ".cache" / "seqgraph"

    model_config = {"frozen": True}


class Configuration(BaseModel):
    """Root configuration for seqgraph."""

    graph: GraphConfig = Field(..., description="Graph location")
    parsing: ParsingConfig = Field(default_factory=ParsingConfig, description="Batch parse settings")
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Page cache settings")

    model_config = {"frozen": True}
