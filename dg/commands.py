"""
Script: dg/commands.py
What: The dg subcommands.
Doing: Turns the session's image reference into docker/fig invocations and GoCD pipeline calls.
Why: Keeps the shell command templates next to each other.
Goal: One small function per subcommand, each running its steps in order and stopping at the first failure.
"""

from __future__ import annotations

from dg import __version__
from dg.common import DgError
from dg.gocd import GoClient, pipeline_name
from dg.identity import Session
from dg.runner import run_with_output

HELP_TEXT = """\
Usage: dg COMMAND

A helper for building, testing, and running docker images via docker & fig.

Commands:
    build         Build an image based on your fig.yml (tags with the project's Git commit hash)
    debug         Debug a previously built image (!) THIS MUST BE RUN IN A SUBSHELL: `$(dg debug)`
    deploy        Trigger the GoCD pipeline for this project
    deploy_check  Check that the GoCD pipelines for this project's deploy stages exist
    help          Display this help text
    purge         Remove ALL docker containers and images (not just for this project!)
    push          Push the image to your docker registry
    run           Run the image using your fig.yml's `web` config
    test          Run the image using your fig.yml's `test` config
    version       Display the current dg version
"""


def _run(session: Session, command: str) -> None:
    run_with_output(command, use_sudo=session.settings.use_sudo)


def _compose(session: Session, args: str) -> str:
    settings = session.settings
    return f"{settings.compose_command} -f {settings.generated_manifest_path} {args}"


def go_client(session: Session) -> GoClient:
    settings = session.settings
    settings.require_go_credentials()
    return GoClient(settings.go_host, settings.go_user, settings.go_password)


def build(session: Session) -> None:
    try:
        _run(session, f"docker build -t {session.image_ref} {session.settings.base_path}")
        # Keep a moving `latest` tag next to the revision tag.
        _run(session, f"docker tag {session.image_ref} {session.latest_ref}")
    except DgError as exc:
        raise DgError(exc.message, "building docker image") from exc


def push(session: Session) -> None:
    _run(session, f"docker push {session.image_ref}")


def run(session: Session) -> None:
    session.write_generated_manifest()
    _run(session, _compose(session, "up -d web"))


def test(session: Session) -> None:
    session.write_generated_manifest()
    try:
        _run(session, _compose(session, "run --rm test"))
    except DgError as exc:
        raise DgError(exc.message, "running tests") from exc


def debug(session: Session) -> None:
    # Only printed: the caller runs it in their own shell via `$(dg debug)`.
    session.write_generated_manifest()
    print(f"docker run -it --entrypoint=/bin/bash {session.image_ref}")


def purge(session: Session) -> None:
    _run(session, "docker rm $(docker ps -a -q) && docker rmi $(docker images -q)")


def deploy(session: Session, client: GoClient | None = None) -> None:
    client = client or go_client(session)
    stages = session.deploy_stages
    print(f"Triggering deploys for: {stages!r}")

    for deploy_stage in stages:
        name = pipeline_name(session.project_name, deploy_stage)
        print(f"Triggering pipeline: {name} on {client.host}")
        # A DgError here stops the loop; later stages are not attempted.
        print(client.schedule_pipeline(name, session.image_ref))


def deploy_check(session: Session, client: GoClient | None = None) -> None:
    client = client or go_client(session)
    stages = session.deploy_stages
    print(f"Checking pipelines for: {stages!r}")

    for deploy_stage in stages:
        name = pipeline_name(session.project_name, deploy_stage)
        print(f"Checking pipeline: {name} on {client.host}")
        print(client.pipeline_status(name))


def version(session: Session | None = None) -> None:
    print(f"v{__version__}")


def print_help(session: Session | None = None) -> None:
    print(HELP_TEXT, end="")
