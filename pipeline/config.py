"""pipeline.config

Harness configuration.

Values come from ``VULN_BENCH_*`` environment variables. A ``.env`` file at
the repo root is loaded first (python-dotenv); variables already set in the
shell win over the file.

================================== ======== ===============================
variable                           default  meaning
================================== ======== ===============================
VULN_BENCH_MAX_WORKERS             4        parallel detector calls
VULN_BENCH_LINE_TOLERANCE          0        +/- lines accepted as a hit
VULN_BENCH_RETRY_ATTEMPTS          3        detector attempts per sample
VULN_BENCH_RETRY_BACKOFF_SECONDS   1.0      first backoff (doubles)
VULN_BENCH_RETRY_BACKOFF_MAX_SECONDS 30.0   backoff cap
VULN_BENCH_DETECTOR_TIMEOUT_SECONDS 60      per call; 0 disables
VULN_BENCH_RUN_TIMEOUT_SECONDS     0        whole run; 0 disables
VULN_BENCH_STRICT_LOAD             false    malformed record aborts load
VULN_BENCH_EXPAND_FIXED            false    score fixed variants too
VULN_BENCH_STRIP_COMMENTS          true     hide annotations from detector
VULN_BENCH_DROP_BLANK_LINES        false    compact source before detection
VULN_BENCH_SERIALIZE_CALLS         false    one detector call at a time
================================== ======== ===============================

Detector selection: ``VULN_BENCH_DETECTOR_URL`` (HTTP service, with
``VULN_BENCH_USE_GPU`` and ``VULN_BENCH_DETECTOR_ENDPOINT``) or
``VULN_BENCH_DETECTOR_CMD`` (local process).

``VULN_BENCH_DETECTOR_STAGES`` (comma separated, e.g. ``predict,cwe,sev``)
splits one prediction over several inference stages: HTTP endpoints, or the
mode argument of the local command. Unset means one call per sample.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[1]
ENV_PATH: Path = ROOT_DIR / ".env"

ENV_PREFIX = "VULN_BENCH_"

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off", ""}


def load_env_file(dotenv_path: Path = ENV_PATH) -> bool:
    """Load ``.env`` into ``os.environ`` without overriding existing values."""
    if not dotenv_path.exists():
        return False
    return bool(load_dotenv(dotenv_path, override=False))


def _raw(env: Mapping[str, str], name: str) -> Optional[str]:
    v = env.get(ENV_PREFIX + name)
    if v is None:
        return None
    v = v.strip()
    return v or None


def _int(env: Mapping[str, str], name: str, default: int, *, minimum: int = 0) -> int:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        val = int(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be an integer, got {raw!r}") from None
    if val < minimum:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= {minimum}, got {val}")
    return val


def _float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = _raw(env, name)
    if raw is None:
        return default
    try:
        val = float(raw)
    except ValueError:
        raise ValueError(f"{ENV_PREFIX}{name} must be a number, got {raw!r}") from None
    if val < 0:
        raise ValueError(f"{ENV_PREFIX}{name} must be >= 0, got {val}")
    return val


def _bool(env: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _raw(env, name)
    if raw is None:
        return default
    low = raw.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


@dataclass(frozen=True)
class HarnessConfig:
    max_workers: int = 4
    line_tolerance: int = 0
    retry_attempts: int = 3
    retry_backoff_seconds: float = 1.0
    retry_backoff_max_seconds: float = 30.0
    detector_timeout_seconds: float = 60.0
    run_timeout_seconds: Optional[float] = None
    strict_load: bool = False
    expand_fixed: bool = False
    strip_comments: bool = True
    drop_blank_lines: bool = False
    serialize_calls: bool = False

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        if self.line_tolerance < 0:
            raise ValueError("line_tolerance must be >= 0")
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, *, dotenv_path: Optional[Path] = ENV_PATH
    ) -> "HarnessConfig":
        """Build a config from the environment.

        With ``environ=None`` the process environment is used, after loading
        *dotenv_path* (pass None to skip the file).
        """
        if environ is None:
            if dotenv_path is not None:
                load_env_file(dotenv_path)
            environ = os.environ

        run_timeout = _float(environ, "RUN_TIMEOUT_SECONDS", 0.0)
        return cls(
            max_workers=_int(environ, "MAX_WORKERS", cls.max_workers, minimum=1),
            line_tolerance=_int(environ, "LINE_TOLERANCE", cls.line_tolerance),
            retry_attempts=_int(environ, "RETRY_ATTEMPTS", cls.retry_attempts, minimum=1),
            retry_backoff_seconds=_float(environ, "RETRY_BACKOFF_SECONDS", cls.retry_backoff_seconds),
            retry_backoff_max_seconds=_float(
                environ, "RETRY_BACKOFF_MAX_SECONDS", cls.retry_backoff_max_seconds
            ),
            detector_timeout_seconds=_float(
                environ, "DETECTOR_TIMEOUT_SECONDS", cls.detector_timeout_seconds
            ),
            run_timeout_seconds=run_timeout or None,
            strict_load=_bool(environ, "STRICT_LOAD", cls.strict_load),
            expand_fixed=_bool(environ, "EXPAND_FIXED", cls.expand_fixed),
            strip_comments=_bool(environ, "STRIP_COMMENTS", cls.strip_comments),
            drop_blank_lines=_bool(environ, "DROP_BLANK_LINES", cls.drop_blank_lines),
            serialize_calls=_bool(environ, "SERIALIZE_CALLS", cls.serialize_calls),
        )

    def with_overrides(self, **overrides: Any) -> "HarnessConfig":
        """Copy with the non-None *overrides* applied (CLI flags)."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return dict(self.__dict__)


def parse_stages(value: Optional[str]) -> Tuple[str, ...]:
    """``"predict, cwe,sev"`` -> ``("predict", "cwe", "sev")``."""
    if not value:
        return ()
    return tuple(s.strip() for s in value.split(",") if s.strip())


@dataclass(frozen=True)
class DetectorSettings:
    url: Optional[str] = None
    command: Optional[str] = None
    endpoint: str = "predict"
    use_gpu: bool = False
    stages: Tuple[str, ...] = ()

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "DetectorSettings":
        env = os.environ if environ is None else environ
        return cls(
            url=_raw(env, "DETECTOR_URL"),
            command=_raw(env, "DETECTOR_CMD"),
            endpoint=_raw(env, "DETECTOR_ENDPOINT") or cls.endpoint,
            use_gpu=_bool(env, "USE_GPU", cls.use_gpu),
            stages=parse_stages(_raw(env, "DETECTOR_STAGES")),
        )
