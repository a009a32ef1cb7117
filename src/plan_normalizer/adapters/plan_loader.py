from __future__ import annotations

import logging
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, TextIO

from ..parser import PlanFormat, detect_format

logger = logging.getLogger(__name__)


class PlanLoaderError(RuntimeError):
    """Exception raised when plan input cannot be read."""


@dataclass(frozen=True, slots=True)
class PlanSource:
    """Raw plan input together with its format and where it came from."""

    text: str
    format: PlanFormat
    origin: str


class PlanLoader:
    """Read Terraform plan output from an artifact, a saved plan file or a stream."""

    def __init__(
        self,
        working_dir: str | os.PathLike[str] = ".",
        *,
        plan_path: str | os.PathLike[str] | None = None,
        plan_file_path: str | os.PathLike[str] | None = None,
        declared_format: PlanFormat | str | None = None,
        stdin: Optional[TextIO] = None,
        terraform_bin: str = "terraform",
        env: Optional[dict[str, str]] = None,
        inherit_environment: bool = False,
    ) -> None:
        self.working_dir = Path(working_dir).resolve()
        self.plan_path = Path(plan_path).resolve() if plan_path else None
        self.plan_file_path = Path(plan_file_path).resolve() if plan_file_path else None
        self.declared_format = PlanFormat(declared_format) if declared_format else None
        self.stdin = stdin
        self.terraform_bin = terraform_bin
        self.env = env or {}
        self.inherit_environment = inherit_environment

    def load(self) -> PlanSource:
        """Return the plan text from the first configured input."""

        if self.plan_path:
            return self._load_artifact(self.plan_path)

        if self.plan_file_path:
            return self._load_plan_file(self.plan_file_path)

        if self.stdin is not None:
            return self._load_stream(self.stdin)

        raise PlanLoaderError("No plan input supplied; pass a plan artifact, a plan file or stdin")

    # Artifact ingestion helpers -------------------------------------------------
    def _load_artifact(self, path: Path) -> PlanSource:
        if not path.exists():
            raise PlanLoaderError(f"Terraform plan artifact not found: {path}")
        if not path.is_file():
            raise PlanLoaderError(f"Terraform plan artifact is not a file: {path}")

        try:
            text = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise PlanLoaderError(
                f"Plan artifact is not UTF-8 text: {path}; use --plan-file for saved binary plans"
            ) from exc
        except OSError as exc:
            raise PlanLoaderError(f"Failed to read plan artifact: {path}") from exc

        plan_format = self.declared_format or detect_format(text, path)
        logger.debug("Loaded %s plan artifact %s", plan_format.value, path)
        return PlanSource(text=text, format=plan_format, origin=str(path))

    def _load_stream(self, stream: TextIO) -> PlanSource:
        text = stream.read()
        plan_format = self.declared_format or detect_format(text)
        return PlanSource(text=text, format=plan_format, origin="<stdin>")

    # Terraform execution --------------------------------------------------------
    def _load_plan_file(self, path: Path) -> PlanSource:
        if not path.exists():
            raise PlanLoaderError(f"Terraform plan file not found: {path}")

        plan_format = self.declared_format or PlanFormat.JSON
        if plan_format is PlanFormat.JSON:
            args = [self.terraform_bin, "show", "-json", str(path)]
        else:
            args = [self.terraform_bin, "show", "-no-color", str(path)]

        completed = self._run_command(
            args,
            cwd=self.working_dir,
            env=self._build_environment(),
            capture_output=True,
        )
        return PlanSource(text=completed.stdout, format=plan_format, origin=str(path))

    def _build_environment(self) -> dict[str, str]:
        if self.inherit_environment:
            env_vars = os.environ.copy()
        else:
            env_vars = {"PATH": os.environ.get("PATH", "")}

        env_vars.update(self.env)
        return env_vars

    # Command runner -------------------------------------------------------------
    def _run_command(
        self,
        args: List[str],
        *,
        cwd: Path | None = None,
        env: Optional[dict[str, str]] = None,
        capture_output: bool = False,
    ) -> subprocess.CompletedProcess[str]:
        try:
            completed = subprocess.run(
                args,
                cwd=cwd,
                env=env,
                check=True,
                capture_output=capture_output,
                text=True,
            )
        except FileNotFoundError as exc:
            raise PlanLoaderError(f"Executable not found: {args[0]}") from exc
        except subprocess.CalledProcessError as exc:
            raise PlanLoaderError(
                f"Command '{' '.join(args)}' failed with exit code {exc.returncode}"
            ) from exc

        return completed


__all__ = ["PlanLoader", "PlanLoaderError", "PlanSource"]
