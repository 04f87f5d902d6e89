"""
Change set model.

A ChangeSet is the proposed unit of work checked against a policy. It is
built per evaluation from a change-set document (YAML/JSON) or from the
JSON emitted by ``gh pr view --json files,title,body,labels,commits``.
Nothing here fetches data; callers supply already-loaded structures.
"""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

from mayor_west.core.errors import ValidationError

# Basenames that mark a dependency manifest or lockfile
DEPENDENCY_MANIFESTS: frozenset[str] = frozenset(
    {
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "requirements.txt",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "Pipfile",
        "Pipfile.lock",
        "poetry.lock",
        "go.mod",
        "go.sum",
        "Cargo.toml",
        "Cargo.lock",
        "Gemfile",
        "Gemfile.lock",
        "pom.xml",
        "build.gradle",
        "composer.json",
    }
)


def is_dependency_manifest(path: str) -> bool:
    return posixpath.basename(path.replace("\\", "/")) in DEPENDENCY_MANIFESTS


@dataclass(frozen=True)
class FileChange:
    path: str
    lines_changed: int = 0


@dataclass(frozen=True)
class DependencyChange:
    ecosystem: str
    name: str


@dataclass(frozen=True)
class PullRequest:
    title: str = ""
    description: str = ""
    labels: tuple[str, ...] = ()
    reviewers: tuple[str, ...] = ()


@dataclass(frozen=True)
class QualityResult:
    """A pre-computed CI check result."""

    name: str
    passed: bool
    value: float | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QualityResult":
        if not isinstance(data, Mapping) or "name" not in data:
            raise ValidationError("Quality result must be a mapping with a 'name'")
        name = str(data["name"])
        value = data.get("value")
        if value is not None:
            try:
                value = float(value)
            except (TypeError, ValueError) as e:
                raise ValidationError(f"Quality result '{name}' value must be a number, got {value!r}") from e
        return cls(
            name=name,
            passed=_flag_field(data.get("passed"), f"Quality result '{name}' passed"),
            value=value,
        )


_TRUE_STRINGS = frozenset({"true", "yes", "on", "1"})
_FALSE_STRINGS = frozenset({"false", "no", "off", "0", ""})


def _unique(items: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates, keeping first-seen order."""
    return tuple(dict.fromkeys(items))


def _list_field(value: Any, field_name: str) -> list[Any]:
    """Return value as a list; None means empty. Scalars are rejected."""
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError(f"{field_name} must be a list, got {type(value).__name__}")
    return value


def _count_field(value: Any, field_name: str) -> int:
    """Parse a non-negative line count."""
    if value is None or value == "":
        return 0
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be an integer, got {value!r}")
    try:
        count = int(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{field_name} must be an integer, got {value!r}") from e
    if count < 0:
        raise ValidationError(f"{field_name} must not be negative, got {count}")
    return count


def _flag_field(value: Any, field_name: str) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in _TRUE_STRINGS | _FALSE_STRINGS:
        return value.strip().lower() in _TRUE_STRINGS
    raise ValidationError(f"{field_name} must be true or false, got {value!r}")


@dataclass(frozen=True)
class ChangeSet:
    """Files, commands, commit and PR metadata for one proposed change."""

    files: tuple[FileChange, ...] = ()
    commands: tuple[str, ...] = ()
    commit_message: str = ""
    dependencies: tuple[DependencyChange, ...] = ()
    pr: PullRequest = PullRequest()

    @property
    def is_empty(self) -> bool:
        return not self.files

    @property
    def paths(self) -> tuple[str, ...]:
        return tuple(f.path for f in self.files)

    @property
    def total_lines_changed(self) -> int:
        return sum(f.lines_changed for f in self.files)

    @property
    def has_dependency_change(self) -> bool:
        return any(is_dependency_manifest(f.path) for f in self.files)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChangeSet":
        """
        Build a change set from a change-set document.

        Only ``files`` is required. Each file may be a bare path string or a
        mapping with ``path`` and ``lines_changed``.

        Raises:
            ValidationError: If the document shape is wrong
        """
        if not isinstance(data, Mapping):
            raise ValidationError("Change set must be a mapping")
        if "files" not in data:
            raise ValidationError("Change set is missing required field 'files'")

        raw_files = data.get("files") or []
        if not isinstance(raw_files, list):
            raise ValidationError("Change set 'files' must be a list")

        files = []
        for index, entry in enumerate(raw_files):
            if isinstance(entry, str):
                files.append(FileChange(path=entry))
            elif isinstance(entry, Mapping) and entry.get("path"):
                files.append(
                    FileChange(
                        path=str(entry["path"]),
                        lines_changed=_count_field(
                            entry.get("lines_changed"), f"Change set files[{index}].lines_changed"
                        ),
                    )
                )
            else:
                raise ValidationError(f"Change set files[{index}] needs a 'path'")

        dependencies = []
        for index, entry in enumerate(_list_field(data.get("dependencies"), "Change set 'dependencies'")):
            if not isinstance(entry, Mapping) or not entry.get("name"):
                raise ValidationError(f"Change set dependencies[{index}] needs a 'name'")
            dependencies.append(
                DependencyChange(
                    ecosystem=str(entry.get("ecosystem", "")),
                    name=str(entry["name"]),
                )
            )

        pr_data = data.get("pr") or {}
        if not isinstance(pr_data, Mapping):
            raise ValidationError("Change set 'pr' must be a mapping")

        commands = _list_field(data.get("commands"), "Change set 'commands'")
        labels = _list_field(pr_data.get("labels"), "Change set 'pr.labels'")
        reviewers = _list_field(pr_data.get("reviewers"), "Change set 'pr.reviewers'")

        return cls(
            files=tuple(files),
            commands=tuple(str(c) for c in commands),
            commit_message=str(data.get("commit_message") or ""),
            dependencies=tuple(dependencies),
            pr=PullRequest(
                title=str(pr_data.get("title") or ""),
                description=str(pr_data.get("description") or ""),
                labels=_unique(str(label) for label in labels),
                reviewers=_unique(str(r) for r in reviewers),
            ),
        )

    @classmethod
    def from_github_pr(cls, data: Mapping[str, Any]) -> "ChangeSet":
        """
        Build a change set from ``gh pr view --json`` output.

        Expects the files, title, body, labels and commits fields. Lines
        changed per file are additions plus deletions. The commit message is
        taken from the last commit.
        """
        if not isinstance(data, Mapping):
            raise ValidationError("GitHub PR data must be a JSON object")

        files = []
        for index, entry in enumerate(_list_field(data.get("files"), "GitHub PR 'files'")):
            if not isinstance(entry, Mapping):
                raise ValidationError(f"GitHub PR files[{index}] must be an object")
            if not entry.get("path"):
                continue
            files.append(
                FileChange(
                    path=str(entry["path"]),
                    lines_changed=_count_field(entry.get("additions"), f"GitHub PR files[{index}].additions")
                    + _count_field(entry.get("deletions"), f"GitHub PR files[{index}].deletions"),
                )
            )

        commit_message = ""
        commits = _list_field(data.get("commits"), "GitHub PR 'commits'")
        if commits:
            last = commits[-1]
            if not isinstance(last, Mapping):
                raise ValidationError("GitHub PR commits must be objects")
            headline = last.get("messageHeadline") or ""
            body = last.get("messageBody") or ""
            commit_message = f"{headline}\n\n{body}" if body else headline

        labels = []
        for label in _list_field(data.get("labels"), "GitHub PR 'labels'"):
            name = label.get("name") if isinstance(label, Mapping) else label
            if name:
                labels.append(str(name))

        return cls(
            files=tuple(files),
            commit_message=commit_message,
            pr=PullRequest(
                title=str(data.get("title") or ""),
                description=str(data.get("body") or ""),
                labels=_unique(labels),
            ),
        )


def parse_quality_results(data: Any) -> list[QualityResult]:
    """Parse a list of ``{name, passed, value}`` mappings."""
    if data is None:
        return []
    if isinstance(data, Mapping) and "quality" in data:
        data = data["quality"]
    if not isinstance(data, list):
        raise ValidationError("Quality results must be a list")
    return [QualityResult.from_dict(item) for item in data]
