"""Writing systemd unit files for channels and driving systemctl."""

from __future__ import annotations

import json
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import jinja2

_TEMPLATE_ENV_VAR = "ZMUX_REMUX_TEMPLATE_UNIT_FILE"
_DEFAULT_TEMPLATE = "templates/service.j2"
_DEFAULT_UNIT_DIR = "/etc/systemd/system"
_SYSTEMCTL_TIMEOUT = 10.0


class SystemdError(RuntimeError):
    """Raised when a unit cannot be written or a systemctl command fails."""


@dataclass(frozen=True)
class SystemdServiceConfig:
    """Values rendered into a unit file."""

    service_name: str
    exec_start: str
    restart_sec: str


def template_file_path() -> str:
    """Return the unit template path, from the environment or the default."""
    return os.environ.get(_TEMPLATE_ENV_VAR) or _DEFAULT_TEMPLATE


class SystemdService:
    """Renders channel units from a template and runs systemctl on them."""

    def __init__(
        self,
        template_path: str | os.PathLike[str] | None = None,
        *,
        unit_dir: str | os.PathLike[str] = _DEFAULT_UNIT_DIR,
        systemctl: str | Sequence[str] = "systemctl",
        timeout: float = _SYSTEMCTL_TIMEOUT,
    ) -> None:
        path = Path(template_path if template_path is not None else template_file_path())
        try:
            source = path.read_text()
            env = jinja2.Environment(undefined=jinja2.StrictUndefined, keep_trailing_newline=True)
            self._template = env.from_string(source)
        except (OSError, jinja2.TemplateError) as exc:
            raise SystemdError(f"failed to parse systemd template: {exc}") from exc
        self._unit_dir = Path(unit_dir)
        self._systemctl = [systemctl] if isinstance(systemctl, str) else list(systemctl)
        self._timeout = timeout

    def commit_service(self, cfg: SystemdServiceConfig) -> None:
        """Write the unit file for ``cfg`` and reload the systemd daemon."""
        path = self._unit_dir / f"{cfg.service_name}.service"
        try:
            content = self._template.render(
                ServiceName=cfg.service_name,
                ExecStart=cfg.exec_start.replace("%", "%%"),
                RestartSec=cfg.restart_sec,
            )
        except jinja2.TemplateError as exc:
            path.unlink(missing_ok=True)
            raise SystemdError(f"execute template: {exc}") from exc
        try:
            with path.open("w") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise SystemdError(f"create service file: {exc}") from exc
        try:
            self._run("daemon-reload")
        except SystemdError as exc:
            path.unlink(missing_ok=True)
            raise SystemdError(f"daemon reload: {exc}") from exc

    def restart_service(self, service_name: str) -> None:
        """Restart a unit."""
        try:
            self._run("restart", f"{service_name}.service")
        except SystemdError as exc:
            raise SystemdError(f"restart: {exc}") from exc

    def enable_service(self, service_name: str) -> None:
        """Enable a unit and start it now."""
        try:
            self._run("enable", "--now", f"{service_name}.service")
        except SystemdError as exc:
            raise SystemdError(f"enable now: {exc}") from exc

    def disable_service(self, service_name: str) -> None:
        """Disable a unit and stop it now."""
        try:
            self._run("disable", "--now", f"{service_name}.service")
        except SystemdError as exc:
            raise SystemdError(f"disable now: {exc}") from exc

    def _run(self, *args: str) -> None:
        command = json.dumps("systemctl " + " ".join(args))
        stdout = stderr = ""
        try:
            result = subprocess.run(
                [*self._systemctl, *args],
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as exc:
            reason = f"timed out after {exc.timeout}s"
            stdout = _as_text(exc.stdout)
            stderr = _as_text(exc.stderr)
        except OSError as exc:
            reason = str(exc)
        else:
            if result.returncode == 0:
                return
            reason = f"exit status {result.returncode}"
            stdout, stderr = result.stdout, result.stderr
        raise SystemdError(f"systemd (command={command}): {reason}\nstdout: {stdout}\nstderr: {stderr}")


def _as_text(data: str | bytes | None) -> str:
    if data is None:
        return ""
    return data.decode(errors="replace") if isinstance(data, bytes) else data