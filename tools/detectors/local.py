"""tools/detectors/local.py

Detector that runs as a local process.

Protocol: the command receives a JSON list holding one function's source text
on stdin and prints its JSON answer on stdout. When a script prints progress
lines first, the last non-empty stdout line is taken as the answer.

With ``modes`` set (for example ``("line", "cwe", "sev")``) the command runs
once per mode as ``<command> <mode> <True|False>``, the second argument
saying whether to use the GPU, and the answers are merged into one finding.

The process is started without a shell; ``command`` may be a string (split
with :func:`shlex.split`) or an argv list.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import shutil
import subprocess
import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from vuln_benchmark.errors import DetectorUnavailable

from .base import Detector, run_stages, unwrap_batch

logger = logging.getLogger(__name__)


def resolve_executable(name: str) -> str:
    """Absolute path of *name*; explicit paths that exist are kept as given."""
    if os.sep in name and Path(name).exists():
        return name
    found = shutil.which(name)
    if not found:
        raise FileNotFoundError(f"executable {name!r} not found on PATH")
    return found


class SubprocessDetector(Detector):
    def __init__(
        self,
        command: Union[str, Sequence[str]],
        *,
        name: Optional[str] = None,
        timeout_seconds: float = 0,
        cwd: Optional[Path] = None,
        env: Optional[Dict[str, str]] = None,
        modes: Sequence[str] = (),
        use_gpu: bool = False,
    ) -> None:
        cmd: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
        if not cmd:
            raise ValueError("detector command is empty")
        self.command = cmd
        self.name = name or Path(cmd[0]).name
        self.timeout_seconds = timeout_seconds
        self.cwd = cwd
        # Extra variables layered over the current environment.
        self.env = env
        self.modes: Tuple[str, ...] = tuple(m for m in modes if m)
        self.use_gpu = use_gpu

    def _run(self, payload: str, mode: Optional[str] = None) -> subprocess.CompletedProcess:
        argv = [resolve_executable(self.command[0]), *self.command[1:]]
        if mode is not None:
            argv += [mode, "True" if self.use_gpu else "False"]
        env = {**os.environ, **self.env} if self.env is not None else None
        return subprocess.run(
            argv,
            cwd=str(self.cwd) if self.cwd else None,
            input=payload,
            text=True,
            capture_output=True,
            timeout=self.timeout_seconds if self.timeout_seconds and self.timeout_seconds > 0 else None,
            env=env,
        )

    def detect(self, source_text: str) -> Any:
        if not self.modes:
            return self._detect(source_text, None)
        try:
            return run_stages(self.modes, lambda mode: self._detect(source_text, mode))
        except ValueError as e:
            raise DetectorUnavailable(f"cannot merge stage answers: {e}", detector=self.name) from e

    def _detect(self, source_text: str, mode: Optional[str]) -> Any:
        t0 = time.monotonic()
        try:
            proc = self._run(json.dumps([source_text]), mode)
        except FileNotFoundError as e:
            raise DetectorUnavailable(str(e), detector=self.name) from e
        except subprocess.TimeoutExpired as e:
            raise DetectorUnavailable(f"timed out after {e.timeout}s", detector=self.name) from e
        except OSError as e:
            raise DetectorUnavailable(f"could not start: {e}", detector=self.name) from e

        stderr = (proc.stderr or "").strip()
        if stderr:
            # Model loaders are chatty on stderr even on success.
            logger.debug("%s stderr: %s", self.name, stderr)

        if proc.returncode != 0:
            tail = stderr.splitlines()[-1:] or [""]
            raise DetectorUnavailable(
                f"exit code {proc.returncode}: {tail[0]}".rstrip(": "), detector=self.name
            )

        logger.debug("%s answered in %.3fs", self.name, time.monotonic() - t0)
        lines = [ln for ln in (proc.stdout or "").splitlines() if ln.strip()]
        if not lines:
            return []
        try:
            return unwrap_batch(json.loads(lines[-1]))
        except json.JSONDecodeError as e:
            raise DetectorUnavailable(f"invalid JSON on stdout: {e.msg}", detector=self.name) from e
