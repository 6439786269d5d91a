"""
Script: tests/test_stages.py
What: Tests deploy-to script discovery and stage parsing.
Doing: Creates zero, one, or several `deploy-to*` files in a temp dir and runs discovery against them.
Why: A wrong match here would deploy to the wrong environment or run the wrong script.
Goal: Discovery fails before running anything unless exactly one executable script exists.
"""

from __future__ import annotations

import stat
import tempfile
import unittest
from pathlib import Path

from dg.common import DgError
from dg.config import Settings
from dg.identity import Session
from dg.stages import discover_deploy_stages, find_deploy_script, parse_stages

STAGE_SCRIPT = """\
#!/bin/sh
touch "$(dirname "$0")/ran-$(basename "$0")"
echo "staging,prod-$1"
"""


class ParseStagesTests(unittest.TestCase):
    def test_splits_on_commas(self) -> None:
        self.assertEqual(parse_stages("staging,prod\n"), ["staging", "prod"])

    def test_trims_entries_and_drops_empty_ones(self) -> None:
        self.assertEqual(parse_stages(" staging , prod,\n"), ["staging", "prod"])

    def test_empty_output_means_no_stages(self) -> None:
        self.assertEqual(parse_stages("\n"), [])


class DiscoverDeployStagesTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.base = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def _write_script(self, name: str, *, executable: bool = True) -> Path:
        script = self.base / name
        script.write_text(STAGE_SCRIPT, encoding="utf-8")
        if executable:
            script.chmod(script.stat().st_mode | stat.S_IXUSR)
        else:
            script.chmod(0o644)
        return script

    def _session(self, **settings) -> Session:
        return Session(Settings(base_path=self.base, branch="main", **settings))

    def _ran(self) -> list[str]:
        return sorted(path.name for path in self.base.glob("ran-*"))

    def test_no_script_is_fatal(self) -> None:
        with self.assertRaises(DgError) as ctx:
            discover_deploy_stages(self._session())
        self.assertIn("0 found", ctx.exception.message)
        self.assertEqual(ctx.exception.step, "determining stage to deploy to")

    def test_several_scripts_are_fatal_and_none_runs(self) -> None:
        self._write_script("deploy-to.sh")
        self._write_script("deploy-to.rb")

        with self.assertRaises(DgError) as ctx:
            discover_deploy_stages(self._session())
        self.assertIn("2 found", ctx.exception.message)
        self.assertEqual(self._ran(), [])

    def test_non_executable_script_is_fatal(self) -> None:
        self._write_script("deploy-to.sh", executable=False)

        with self.assertRaises(DgError) as ctx:
            discover_deploy_stages(self._session())
        self.assertIn('"deploy-to.sh" must be executable', ctx.exception.message)
        self.assertIn("chmod +x deploy-to.sh", ctx.exception.message)
        self.assertEqual(self._ran(), [])

    def test_runs_single_script_with_branch(self) -> None:
        self._write_script("deploy-to.sh")

        stages = discover_deploy_stages(self._session())
        self.assertEqual(stages, ["staging", "prod-main"])
        self.assertEqual(self._ran(), ["ran-deploy-to.sh"])

    def test_explicit_script_skips_glob(self) -> None:
        self._write_script("deploy-to.sh")
        self._write_script("deploy-to.rb")
        self._write_script("stages.sh")

        stages = discover_deploy_stages(self._session(deploy_script="stages.sh"))
        self.assertEqual(stages, ["staging", "prod-main"])
        self.assertEqual(self._ran(), ["ran-stages.sh"])

    def test_missing_explicit_script_is_fatal(self) -> None:
        with self.assertRaises(DgError):
            find_deploy_script(self.base, "nope.sh")

    def test_session_caches_stages(self) -> None:
        self._write_script("deploy-to.sh")
        session = self._session()

        first = session.deploy_stages
        (self.base / "ran-deploy-to.sh").unlink()
        self.assertIs(session.deploy_stages, first)
        self.assertEqual(self._ran(), [])


if __name__ == "__main__":
    unittest.main()
