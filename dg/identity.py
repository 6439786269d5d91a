"""
Script: dg/identity.py
What: Works out which image this project builds and how it is tagged.
Doing: Reads `fig.yml` once, extracts the `image:` name, appends the git revision, and writes `fig_gen.yml`.
Why: build, push, run, test, and deploy must all agree on one image reference.
Goal: Hold every derived value for one invocation on a single session object.
"""

from __future__ import annotations

import re
import sys
from functools import cached_property
from typing import Callable

from dg.common import DgError, git_current_branch, git_head_revision
from dg.config import Settings
from dg.stages import discover_deploy_stages

IMAGE_LINE_RE = re.compile(r"\s+image: (.*)")
LATEST_TAG = "latest"


def extract_image_name(manifest_text: str) -> str:
    """Return the value of the first indented `image:` line, or empty string."""
    match = IMAGE_LINE_RE.search(manifest_text)
    return match.group(1).strip() if match else ""


def project_name_from_image(image_name: str) -> str:
    """`registry.example.com/team/app` -> `app`."""
    return image_name.rstrip("/").split("/")[-1]


def substitute_image(manifest_text: str, image_name: str, image_ref: str) -> str:
    """Replace only the first occurrence of `image_name` with `image_ref`."""
    return manifest_text.replace(image_name, image_ref, 1)


class Session:
    """
    Per-invocation state for one dg command.

    Everything is computed lazily on first use and then kept; nothing is
    re-read or re-validated later in the same run.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        revision_lookup: Callable[[], str] | None = None,
        branch_lookup: Callable[[], str] | None = None,
    ) -> None:
        self.settings = settings
        cwd = str(settings.base_path)
        self._revision_lookup = revision_lookup or (lambda: git_head_revision(cwd))
        self._branch_lookup = branch_lookup or (lambda: git_current_branch(cwd))
        self._deploy_stages: list[str] | None = None

    @cached_property
    def manifest_text(self) -> str:
        path = self.settings.manifest_path
        try:
            return path.read_text(encoding="utf-8")
        except OSError as exc:
            raise DgError(str(exc), f"reading fig.yml from {path}") from exc

    @cached_property
    def image_name(self) -> str:
        image_name = extract_image_name(self.manifest_text)
        if not image_name:
            raise DgError(
                "no `image: <name>` line found",
                f"reading the image name from {self.settings.manifest_path}",
            )
        return image_name

    @cached_property
    def project_name(self) -> str:
        return self.settings.pipeline_name or project_name_from_image(self.image_name)

    @cached_property
    def revision(self) -> str:
        if self.settings.revision:
            return self.settings.revision
        try:
            revision = self._revision_lookup()
        except DgError as exc:
            print(
                f"Could not read git revision ({exc.message}); tagging as {LATEST_TAG}",
                file=sys.stderr,
            )
            return LATEST_TAG
        return revision or LATEST_TAG

    @cached_property
    def image_ref(self) -> str:
        return f"{self.image_name}:{self.revision}"

    @cached_property
    def latest_ref(self) -> str:
        return f"{self.image_name}:{LATEST_TAG}"

    @cached_property
    def branch(self) -> str:
        return self.settings.branch or self._branch_lookup()

    @property
    def deploy_stages(self) -> list[str]:
        if self._deploy_stages is None:
            self._deploy_stages = discover_deploy_stages(self)
        return self._deploy_stages

    def generated_manifest(self) -> str:
        return substitute_image(self.manifest_text, self.image_name, self.image_ref)

    def write_generated_manifest(self) -> None:
        """Write `fig_gen.yml` pointing at the revision-tagged image."""
        content = self.generated_manifest()
        try:
            self.settings.generated_manifest_path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise DgError(str(exc), "generating new fig.yml") from exc
