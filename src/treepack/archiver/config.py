"""Configuration schema for treepack."""

from typing import Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from treepack.common import LoggingConfig

DEFAULT_CHUNK_SIZE = 65536  # 64 KB


class ArchiveConfig(BaseModel):
    """Configuration for archive creation and reading."""
    
    model_config = ConfigDict(extra='forbid')
    
    chunk_size: int = Field(
        default=DEFAULT_CHUNK_SIZE,
        ge=1024,
        description="Buffer size in bytes for streaming entry content"
    )
    sort_entries: bool = Field(
        default=True,
        description="Visit directory children in name order for reproducible archives"
    )
    tar_directory_entries: bool = Field(
        default=True,
        description="Write directory headers into tar archives"
    )
    symlinks: Literal["skip", "error"] = Field(
        default="skip",
        description="How symlinks in source trees and tar archives are handled"
    )

    @field_validator('symlinks', mode='before')
    @classmethod
    def normalize_symlinks(cls, v: str) -> str:
        if isinstance(v, str):
            return v.lower()
        return v


class ExtractionConfig(BaseModel):
    """Configuration for archive extraction."""
    
    model_config = ConfigDict(extra='forbid')
    
    on_traversal: Literal["abort", "skip"] = Field(
        default="abort",
        description="Abort extraction or skip the entry when a member escapes the output directory"
    )

    @field_validator('on_traversal', mode='before')
    @classmethod
    def normalize_on_traversal(cls, v: str) -> str:
        if isinstance(v, str):
            return v.lower()
        return v


class TreepackConfig(BaseModel):
    """Root configuration for treepack."""
    
    model_config = ConfigDict(extra='forbid')
    
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    archive: ArchiveConfig = Field(default_factory=ArchiveConfig)
    extraction: ExtractionConfig = Field(default_factory=ExtractionConfig)
