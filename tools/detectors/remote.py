"""tools/detectors/remote.py

Detector behind an HTTP inference service (on-premise or cloud).

Endpoint layout follows the inference server the corpus was annotated with::

    POST <base_url>/api/v1/<cpu|gpu>/<endpoint>
    body: ["<function source>"]

The server splits a prediction over three endpoints: ``predict`` (vulnerable
lines), ``cwe`` and ``sev``. ``endpoint`` takes one name or a sequence; with
several, each is called in order and the answers are merged into one finding
(see :func:`tools.detectors.base.run_stages`). Some deployments return the
JSON answer as a JSON-encoded *string*; that is decoded once more.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import requests

from vuln_benchmark.errors import DetectorUnavailable

from .base import Detector, run_stages, unwrap_batch

logger = logging.getLogger(__name__)


class HttpDetector(Detector):
    def __init__(
        self,
        base_url: str,
        *,
        endpoint: Union[str, Sequence[str]] = "predict",
        use_gpu: bool = False,
        timeout_seconds: float = 60,
        headers: Optional[Dict[str, str]] = None,
        session: Optional[requests.Session] = None,
        name: str = "http",
    ) -> None:
        if not base_url:
            raise ValueError("detector base_url is empty")
        names = [endpoint] if isinstance(endpoint, str) else list(endpoint)
        self.endpoints: Tuple[str, ...] = tuple(e.strip("/") for e in names if e and e.strip("/"))
        if not self.endpoints:
            raise ValueError("detector endpoint is empty")
        self.base_url = base_url.rstrip("/")
        self.use_gpu = use_gpu
        self.timeout_seconds = timeout_seconds
        self.headers = {"Content-Type": "application/json", **(headers or {})}
        self.session = session or requests.Session()
        self.name = name

    def url_for(self, endpoint: str) -> str:
        device = "gpu" if self.use_gpu else "cpu"
        return f"{self.base_url}/api/v1/{device}/{endpoint}"

    @property
    def url(self) -> str:
        return self.url_for(self.endpoints[0])

    def _post(self, endpoint: str, source_text: str) -> Any:
        url = self.url_for(endpoint)
        t0 = time.monotonic()
        try:
            resp = self.session.post(
                url,
                data=json.dumps([source_text]),
                headers=self.headers,
                timeout=self.timeout_seconds or None,
            )
            resp.raise_for_status()
            payload = resp.json()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else "?"
            raise DetectorUnavailable(f"HTTP {status} from {url}", detector=self.name) from e
        except requests.RequestException as e:
            raise DetectorUnavailable(f"request to {url} failed: {e}", detector=self.name) from e
        except ValueError as e:
            raise DetectorUnavailable(f"invalid JSON from {url}", detector=self.name) from e

        if isinstance(payload, str):
            try:
                payload = json.loads(payload)
            except json.JSONDecodeError as e:
                raise DetectorUnavailable(f"invalid JSON from {url}", detector=self.name) from e

        logger.debug("%s answered in %.3fs", url, time.monotonic() - t0)
        return unwrap_batch(payload)

    def detect(self, source_text: str) -> Any:
        try:
            return run_stages(self.endpoints, lambda ep: self._post(ep, source_text))
        except ValueError as e:
            raise DetectorUnavailable(f"cannot merge stage answers: {e}", detector=self.name) from e
