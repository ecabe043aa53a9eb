"""Scan configuration.

Configuration via environment variables (read at call time, not import time):
    PROJECTMAP_MAX_CONCURRENCY: Max file reads in flight per sweep pass (default: 32)
    PROJECTMAP_MARKUP_EXTENSION: Extension of the seed documents (default: html)
    PROJECTMAP_REQUIRE_RESOLUTION: 'project' or 'containing' (default: project)
    PROJECTMAP_ENCODING: Text encoding used to read files (default: utf-8)
    PROJECTMAP_IGNORE: Comma-separated extra ignore patterns
"""

import os

from pydantic import BaseModel, Field, field_validator

from projectmap.models.graph import ReferenceVia, ResolutionStrategy

DEFAULT_MAX_CONCURRENCY = 32

# Only require() resolves against the project base by default
DEFAULT_STRATEGIES: dict[ReferenceVia, ResolutionStrategy] = {
    "link": "containing",
    "import": "containing",
    "script": "containing",
    "require": "project",
}


class ScanConfig(BaseModel):
    """Options for one project map build."""

    max_concurrency: int = Field(
        default=DEFAULT_MAX_CONCURRENCY,
        ge=1,
        description="Upper bound on concurrently outstanding reads in a sweep pass",
    )
    markup_extension: str = Field(
        default="html", description="Extension (without dot) of markup documents"
    )
    require_resolution: ResolutionStrategy = Field(
        default="project",
        description=(
            "How require() targets are resolved: against the project base directory "
            "('project') or the requiring file's directory ('containing')"
        ),
    )
    encoding: str = Field(default="utf-8", description="Encoding used to decode file content")
    extra_ignores: list[str] = Field(
        default_factory=list, description="Ignore patterns added to the defaults"
    )

    @field_validator("markup_extension")
    @classmethod
    def _strip_dot(cls, value: str) -> str:
        value = value.strip().lstrip(".")
        if not value:
            raise ValueError("markup_extension must not be empty")
        return value.lower()

    @classmethod
    def from_env(cls, **overrides: object) -> "ScanConfig":
        """Build a config from PROJECTMAP_* variables, then apply explicit overrides.

        Overrides whose value is None are ignored, so CLI options can be
        passed straight through.
        """
        values: dict[str, object] = {}

        if (raw := os.getenv("PROJECTMAP_MAX_CONCURRENCY")) is not None:
            values["max_concurrency"] = raw
        if (raw := os.getenv("PROJECTMAP_MARKUP_EXTENSION")) is not None:
            values["markup_extension"] = raw
        if (raw := os.getenv("PROJECTMAP_REQUIRE_RESOLUTION")) is not None:
            values["require_resolution"] = raw.strip().lower()
        if (raw := os.getenv("PROJECTMAP_ENCODING")) is not None:
            values["encoding"] = raw
        if (raw := os.getenv("PROJECTMAP_IGNORE")) is not None:
            values["extra_ignores"] = [p.strip() for p in raw.split(",") if p.strip()]

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls.model_validate(values)

    def strategies(self) -> dict[ReferenceVia, ResolutionStrategy]:
        """Resolution strategy for each kind of reference."""
        return {**DEFAULT_STRATEGIES, "require": self.require_resolution}
