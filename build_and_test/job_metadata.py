"""
Declared job metadata for the CI orchestrator.

The orchestrator reads a `#:` comment header at the top of the job script.
The header body is TOML. The driver itself only uses output_rules, to tag
each leftover with whether the orchestrator would keep it.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from .errors import JobMetadataError

HEADER_PREFIX = "#:"
REQUIRED_KEYS = ("name", "variety")


@dataclass(frozen=True)
class OutputRule:
    """A single output glob; excluded rules start with '!'."""

    pattern: str
    exclude: bool = False

    @classmethod
    def parse(cls, raw: str) -> "OutputRule":
        if raw.startswith("!"):
            return cls(pattern=raw[1:], exclude=True)
        return cls(pattern=raw)

    def matches(self, path: Path | str) -> bool:
        # PurePath.match keeps '*' within a single path component.
        return PurePosixPath(path).match(self.pattern)

    def __str__(self) -> str:
        return f"!{self.pattern}" if self.exclude else self.pattern


@dataclass(frozen=True)
class JobMetadata:
    """Metadata consumed by the orchestrator, not by the run itself."""

    name: str
    variety: str
    target: str | None = None
    rust_toolchain: str | None = None
    output_rules: tuple[OutputRule, ...] = field(default_factory=tuple)

    def is_preserved(self, path: Path | str) -> bool:
        """Return True when an included rule matches and no excluded rule does."""
        included = False
        for rule in self.output_rules:
            if not rule.matches(path):
                continue
            if rule.exclude:
                return False
            included = True
        return included

    def describe(self) -> list[str]:
        lines = [
            f"name           {self.name}",
            f"variety        {self.variety}",
            f"target         {self.target or '-'}",
            f"rust_toolchain {self.rust_toolchain or '-'}",
            "output_rules",
        ]
        lines.extend(f"  {rule}" for rule in self.output_rules)
        return lines


def extract_header(text: str) -> str:
    """Return the TOML body of the leading `#:` comment block."""
    body: list[str] = []
    for line in text.splitlines():
        if line.startswith("#!") and not body:
            continue
        if not line.startswith("#"):
            break
        if line.startswith(HEADER_PREFIX):
            body.append(line[len(HEADER_PREFIX):])
    return "\n".join(body)


def parse_job_metadata(header: str, *, source: str = "<header>") -> JobMetadata:
    """Parse the TOML header body into JobMetadata.

    Raises:
        JobMetadataError: If the header is empty, invalid TOML, or incomplete
    """
    if not header.strip():
        raise JobMetadataError(f"No '{HEADER_PREFIX}' job header found in {source}")
    try:
        payload = tomllib.loads(header)
    except tomllib.TOMLDecodeError as exc:
        raise JobMetadataError(f"Invalid job header in {source}: {exc}") from exc
    missing = [key for key in REQUIRED_KEYS if key not in payload]
    if missing:
        raise JobMetadataError(f"Job header in {source} missing keys: {', '.join(missing)}")
    rules = payload.get("output_rules", [])
    if not isinstance(rules, list) or not all(isinstance(rule, str) for rule in rules):
        raise JobMetadataError(f"output_rules in {source} must be a list of strings")
    return JobMetadata(
        name=str(payload["name"]),
        variety=str(payload["variety"]),
        target=payload.get("target"),
        rust_toolchain=payload.get("rust_toolchain"),
        output_rules=tuple(OutputRule.parse(rule) for rule in rules),
    )


def parse_job_header(path: Path) -> JobMetadata:
    """Read and parse the job header of the script at path."""
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise JobMetadataError(f"Unable to read job script {path}: {exc}") from exc
    return parse_job_metadata(extract_header(text), source=str(path))
