"""
Script: dg package
What: Command-line helper for building, testing, running, and deploying docker images.
Doing: Groups the CLI entrypoint, the image/tag resolution, and the GoCD client in one importable package.
Why: Every project used to carry its own copy of these shell steps.
Goal: One `dg <command>` that behaves the same in every repository and on the CI agents.
"""

__version__ = "0.3.0"
