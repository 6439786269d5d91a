"""
Script: dg/config.py
What: Loads every dg setting from environment variables.
Doing: Reads overrides, CI server credentials, and tool choices into one frozen object.
Why: Commands should not reach into `os.environ` on their own.
Goal: Build configuration once per invocation and pass it around explicitly.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from dg.common import DgError, optional_env

MANIFEST_NAME = "fig.yml"
GENERATED_MANIFEST_NAME = "fig_gen.yml"
DEFAULT_MATERIAL_NAME = "BITBUCKET"
DEFAULT_COMPOSE_COMMAND = "fig"
GO_CREDENTIAL_ENVS = ("GO_HOST", "GO_USER", "GO_PWD")


@dataclass(frozen=True)
class Settings:
    base_path: Path
    revision: str = ""
    material_name: str = DEFAULT_MATERIAL_NAME
    branch: str = ""
    pipeline_name: str = ""
    go_host: str = ""
    go_user: str = ""
    go_password: str = ""
    use_sudo: bool = False
    deploy_script: str = ""
    compose_command: str = DEFAULT_COMPOSE_COMMAND

    @property
    def manifest_path(self) -> Path:
        return self.base_path / MANIFEST_NAME

    @property
    def generated_manifest_path(self) -> Path:
        return self.base_path / GENERATED_MANIFEST_NAME

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        base_path: Path | None = None,
    ) -> "Settings":
        env = os.environ if environ is None else environ
        material_name = optional_env("MATERIAL_NAME", DEFAULT_MATERIAL_NAME, env)

        # GoCD exports the checked-out revision per material; an explicit
        # GIT_COMMIT still wins.
        revision = optional_env("GIT_COMMIT", "", env) or optional_env(
            f"GO_REVISION_{material_name}", "", env
        )

        return cls(
            base_path=Path(base_path) if base_path is not None else Path.cwd(),
            revision=revision.strip(),
            material_name=material_name,
            branch=optional_env("GIT_BRANCH", "", env).strip(),
            pipeline_name=optional_env("GO_PIPELINE_NAME", "", env).strip(),
            go_host=optional_env("GO_HOST", "", env),
            go_user=optional_env("GO_USER", "", env),
            go_password=optional_env("GO_PWD", "", env),
            use_sudo=bool(optional_env("USE_SUDO", "", env)),
            deploy_script=optional_env("DEPLOY_TO_SCRIPT", "", env).strip(),
            compose_command=optional_env("DG_COMPOSE", DEFAULT_COMPOSE_COMMAND, env).strip()
            or DEFAULT_COMPOSE_COMMAND,
        )

    def require_go_credentials(self) -> None:
        """Fail once, listing all three variables, when any of them is unset."""
        if not (self.go_host and self.go_user and self.go_password):
            raise DgError(
                f"Environment variables {{{', '.join(GO_CREDENTIAL_ENVS)}}} must be set",
                "triggering pipeline",
            )
