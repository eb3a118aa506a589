"""
Build Run Models
================
Inputs for one invocation of the build tool.

BuildRunConfig (pydantic) — what the test asks for:
    build_file_content — inline build file, materialized as a temp file
    build_file_path    — existing build file on disk
    global_options     — flags placed before the subcommand
    build_options      — flags placed after the file selection
    working_directory  — cwd for the build tool, None for the harness cwd
    output_sink        — writable stream receiving the tool's stdout

BuildCommand (frozen dataclass) — the argument vector, serialized in one
fixed order:

    <global_options> <subcommand> [-f <file_path>] <extra_options>

rocker parses global options positionally, so they must precede the
subcommand.
"""
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, model_validator

from harness.core.constants import BUILD_SUBCOMMAND, FILE_FLAG


class BuildRunConfig(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    build_file_content: Optional[str] = None
    build_file_path: Optional[Path] = None
    global_options: List[str] = []
    build_options: List[str] = []
    working_directory: Optional[Path] = None
    output_sink: Optional[Any] = None

    @model_validator(mode="after")
    def check_single_build_file_source(self) -> "BuildRunConfig":
        if self.build_file_content is not None and self.build_file_path is not None:
            raise ValueError("build_file_content and build_file_path are mutually exclusive")
        return self


@dataclass(frozen=True)
class BuildCommand:
    subcommand: str = BUILD_SUBCOMMAND
    global_options: Tuple[str, ...] = ()
    file_path: Optional[str] = None
    extra_options: Tuple[str, ...] = ()

    def argv(self) -> List[str]:
        args = list(self.global_options)
        args.append(self.subcommand)
        if self.file_path is not None:
            args.extend([FILE_FLAG, str(self.file_path)])
        args.extend(self.extra_options)
        return args
