"""
Script: dg/stages.py
What: Finds out which deploy stages this branch should go to.
Doing: Locates the project's `deploy-to*` script, runs it with the branch name, and splits its comma-separated output.
Why: Each project decides its own branch -> environment mapping.
Goal: Produce the stage list that `deploy` and `deploy_check` loop over.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dg.common import DgError, run_cmd

if TYPE_CHECKING:
    from dg.identity import Session

DEPLOY_SCRIPT_GLOB = "deploy-to*"
STEP = "determining stage to deploy to"


def find_deploy_script(base_path: Path, explicit: str = "") -> Path:
    """
    Return the discovery script.

    An explicit path (from `DEPLOY_TO_SCRIPT`) is used as-is. Without one,
    exactly one `deploy-to*` file must exist in `base_path`.
    """
    if explicit:
        script = Path(explicit)
        if not script.is_absolute():
            script = base_path / script
        if not script.is_file():
            raise DgError(f'Deploy-to script: "{script}" does not exist', STEP)
        return script

    candidates = sorted(path for path in base_path.glob(DEPLOY_SCRIPT_GLOB) if path.is_file())
    if len(candidates) != 1:
        raise DgError(
            "There must be a deploy-to* script "
            f"(e.g. deploy-to.{{rb|sh|js}}): {len(candidates)} found",
            STEP,
        )
    return candidates[0]


def ensure_executable(script: Path) -> None:
    if not os.access(script, os.X_OK):
        raise DgError(
            f'Deploy-to script: "{script.name}" must be executable! (e.g. chmod +x {script.name})',
            STEP,
        )


def parse_stages(output: str) -> list[str]:
    """`"staging, prod\\n"` -> `["staging", "prod"]`."""
    return [stage.strip() for stage in output.strip().split(",") if stage.strip()]


def discover_deploy_stages(session: Session) -> list[str]:
    settings = session.settings
    script = find_deploy_script(settings.base_path, settings.deploy_script)
    ensure_executable(script)

    output = run_cmd([str(script.resolve()), session.branch], cwd=str(settings.base_path))
    return parse_stages(output)
