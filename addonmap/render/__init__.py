"""Artifact rendering: stamped JSON payloads and their Markdown views."""

from .markdown import MARKDOWN_RENDERERS, render_markdown
from .writer import (
    ArtifactPaths,
    Provenance,
    dump_json,
    stamp_payload,
    utc_timestamp,
    write_artifact_pair,
)

__all__ = [
    "ArtifactPaths",
    "MARKDOWN_RENDERERS",
    "Provenance",
    "dump_json",
    "render_markdown",
    "stamp_payload",
    "utc_timestamp",
    "write_artifact_pair",
]
