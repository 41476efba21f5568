"""
snarkjs Groth16 Verifier

Checks withdraw proofs produced by the circom/snarkjs toolchain by
shelling out to `snarkjs groth16 verify`. The verification key is the
`verification_key.json` exported after the trusted setup.
"""

from __future__ import annotations

import json
import logging
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Any, Sequence

logger = logging.getLogger(__name__)


class SnarkjsError(Exception):
    """snarkjs could not be run (missing binary, timeout, bad key)."""


class SnarkjsVerifier:
    """
    Groth16 verifier backed by the snarkjs CLI.

    Args:
        vkey_path: Path to verification_key.json
        command: snarkjs invocation, e.g. ["snarkjs"] or ["npx", "snarkjs"]
        timeout: Seconds before the subprocess is killed
    """

    def __init__(
        self,
        vkey_path: str | Path,
        *,
        command: Sequence[str] = ("snarkjs",),
        timeout: float = 60.0,
    ) -> None:
        self.vkey_path = Path(vkey_path)
        self.command = list(command)
        self.timeout = timeout

    def _check_setup(self) -> None:
        if not self.vkey_path.exists():
            raise SnarkjsError(f"Verification key not found: {self.vkey_path}")
        if shutil.which(self.command[0]) is None:
            raise SnarkjsError(f"Executable not found on PATH: {self.command[0]}")

    def verify(self, proof: Any, public_inputs: Sequence[int]) -> bool:
        """
        Write proof and public signals to a temp dir and run snarkjs.

        Returns:
            True when snarkjs exits 0 and reports OK

        Raises:
            SnarkjsError: If snarkjs cannot be executed
        """
        self._check_setup()

        with tempfile.TemporaryDirectory(prefix="privpay-verify-") as tmp:
            proof_path = Path(tmp) / "proof.json"
            public_path = Path(tmp) / "public.json"
            proof_path.write_text(json.dumps(proof))
            public_path.write_text(json.dumps([str(v) for v in public_inputs]))

            cmd = [*self.command, "groth16", "verify", str(self.vkey_path), str(public_path), str(proof_path)]
            try:
                result = subprocess.run(
                    cmd,
                    capture_output=True,
                    text=True,
                    timeout=self.timeout,
                    check=False,
                )
            except subprocess.TimeoutExpired as e:
                raise SnarkjsError(f"snarkjs timed out after {self.timeout}s") from e

        if result.returncode != 0:
            logger.info(f"snarkjs rejected proof (exit {result.returncode}): {result.stderr[:200]}")
            return False
        return "OK" in result.stdout


__all__ = ["SnarkjsVerifier", "SnarkjsError"]
