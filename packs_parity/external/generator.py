"""
Artifact generation collaborators.

The checker only compares artifacts; producing them is delegated to an
ArtifactGenerator. The cargo implementation rebuilds the experimental tool
and asks it to write both caches with verification enabled.
"""

import os
import subprocess
from pathlib import Path
from typing import Callable, Dict, List, Optional

from packs_parity.comparison.exceptions import GeneratorError
from packs_parity.config.settings import Settings
from packs_parity.utils.logger import get_logger, log_operation

logger = get_logger(__name__)


class ArtifactGenerator:
    """Interface: make sure artifacts in the cache are up to date."""

    def ensure_artifacts(self, settings: Settings) -> None:
        raise NotImplementedError


class NoopArtifactGenerator(ArtifactGenerator):
    """Use whatever is already in the cache directory."""

    def ensure_artifacts(self, settings: Settings) -> None:
        logger.info(
            "Skipping artifact generation",
            operation="ensure_artifacts",
            context={"cache_dir": str(settings.cache_dir)},
        )


class CargoArtifactGenerator(ArtifactGenerator):
    """
    Build the packs binary with cargo and run ``packs generate_cache``.

    The packs checkout is expected next to the current project, at
    ``../<packs_dir>``.
    """

    def __init__(
        self,
        workdir: Path = Path("."),
        runner: Callable[..., subprocess.CompletedProcess] = subprocess.run,
    ):
        self.workdir = Path(workdir)
        self.runner = runner

    def packs_checkout(self, settings: Settings) -> Path:
        return self.workdir.parent / settings.packs_dir

    def binary_path(self, settings: Settings) -> Path:
        return self.packs_checkout(settings) / "target" / "release" / "packs"

    @log_operation("ensure_artifacts")
    def ensure_artifacts(self, settings: Settings) -> None:
        """
        Build and run the producer.

        Raises:
            GeneratorError: If the checkout is missing or a command fails
        """
        checkout = self.packs_checkout(settings)
        if not checkout.is_dir():
            raise GeneratorError(f"packs checkout not found at {checkout}")

        self._run(["cargo", "build", "--release"], cwd=checkout)

        env = os.environ.copy()
        env["CACHE_VERIFICATION"] = "1"
        self._run([str(self.binary_path(settings)), "generate_cache"], cwd=self.workdir, env=env)

    def _run(
        self, cmd: List[str], *, cwd: Path, env: Optional[Dict[str, str]] = None
    ) -> None:
        logger.info(f"Running: {' '.join(cmd)}", context={"cwd": str(cwd)})
        try:
            self.runner(cmd, cwd=cwd, env=env, check=True)
        except FileNotFoundError as e:
            raise GeneratorError(f"Command not found: {cmd[0]}") from e
        except subprocess.CalledProcessError as e:
            raise GeneratorError(
                f"Command {' '.join(cmd)} exited with status {e.returncode}"
            ) from e
