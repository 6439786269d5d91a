"""
Script: dg/gocd.py
What: Talks to the GoCD server's pipeline API.
Doing: Schedules `docker-<project>-<stage>` pipelines with the image to deploy, or checks that they exist.
Why: Deploys are executed by GoCD, dg only kicks them off.
Goal: Keep the HTTP details (auth, form fields, expected codes) in one place.
"""

from __future__ import annotations

import requests
from requests.auth import HTTPBasicAuth

from dg.common import DgError

SCHEDULE_ACCEPTED = 202
STATUS_OK = 200
IMAGE_ID_FIELD = "variables[IMAGE_ID]"


def pipeline_name(project_name: str, deploy_stage: str) -> str:
    return f"docker-{project_name}-{deploy_stage}"


class GoClient:
    def __init__(
        self,
        host: str,
        user: str,
        password: str,
        *,
        session: requests.Session | None = None,
        timeout: float | None = None,
    ) -> None:
        self.host = host
        self.auth = HTTPBasicAuth(user, password)
        self.session = session or requests.Session()
        self.timeout = timeout

    def pipeline_url(self, name: str, action: str) -> str:
        return f"https://{self.host}/go/api/pipelines/{name}/{action}"

    def _request(self, method: str, url: str, step: str, **kwargs) -> requests.Response:
        try:
            return self.session.request(method, url, auth=self.auth, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise DgError(str(exc), step) from exc

    def schedule_pipeline(self, name: str, image_ref: str) -> str:
        """Trigger `name` with IMAGE_ID set to `image_ref`; return the server's reply."""
        step = "scheduling pipeline"
        response = self._request(
            "POST",
            self.pipeline_url(name, "schedule"),
            step,
            data={IMAGE_ID_FIELD: image_ref},
        )
        body = response.text.strip()
        if response.status_code != SCHEDULE_ACCEPTED:
            raise DgError(f"response code was {response.status_code}: {body}", step)
        return body

    def pipeline_status(self, name: str) -> str:
        step = "checking pipeline"
        response = self._request("GET", self.pipeline_url(name, "status"), step)
        body = response.text.strip()
        if response.status_code != STATUS_OK:
            raise DgError(f"response code was {response.status_code}: {body}", step)
        return body
