"""
Proof Verifier Unit Tests
Tests for core/verifier/
"""
import subprocess

import pytest

from core.crypto.hashing import bytes32_to_int
from core.merkle.witness import TreeReplica
from core.verifier import InclusionProofVerifier, MockVerifier, ProofVerifier, SnarkjsError, SnarkjsVerifier

from fixtures.common import make_commitment, make_ledger


class TestMockVerifier:
    """Tests for MockVerifier."""

    def test_fixed_answer_and_recording(self):
        verifier = MockVerifier(result=False)
        assert verifier.verify("p", (1, 2)) is False
        assert verifier.calls == [("p", [1, 2])]

    def test_satisfies_protocol(self):
        assert isinstance(MockVerifier(), ProofVerifier)


class TestInclusionProofVerifier:
    """Tests for the development inclusion verifier."""

    def witness(self):
        ledger = make_ledger(depth=4)
        for i in range(3):
            ledger.add_commitment(make_commitment(i))
        replica = TreeReplica(depth=4)
        replica.apply_all(ledger.events())
        return ledger, replica.witness(1)

    def test_accepts_valid_witness(self):
        ledger, witness = self.witness()
        verifier = InclusionProofVerifier(depth=4)
        assert verifier.verify(witness, [bytes32_to_int(ledger.root), 0, 0, 0])

    def test_accepts_dict_form(self):
        ledger, witness = self.witness()
        assert InclusionProofVerifier().verify(witness.to_dict(), [bytes32_to_int(ledger.root)])

    def test_rejects_root_mismatch(self):
        _, witness = self.witness()
        assert not InclusionProofVerifier().verify(witness, [123])

    def test_rejects_wrong_depth(self):
        ledger, witness = self.witness()
        assert not InclusionProofVerifier(depth=5).verify(witness, [bytes32_to_int(ledger.root)])

    def test_rejects_garbage(self):
        assert not InclusionProofVerifier().verify({"leaf": "nope"}, [1])
        assert not InclusionProofVerifier().verify(None, [1])
        assert not InclusionProofVerifier().verify({}, [])


class TestSnarkjsVerifier:
    """Tests for SnarkjsVerifier with subprocess stubbed out."""

    @pytest.fixture
    def vkey(self, tmp_path):
        path = tmp_path / "verification_key.json"
        path.write_text("{}")
        return path

    def test_missing_key(self, tmp_path):
        verifier = SnarkjsVerifier(tmp_path / "missing.json")
        with pytest.raises(SnarkjsError, match="Verification key"):
            verifier.verify({}, [1])

    def test_missing_binary(self, vkey, monkeypatch):
        monkeypatch.setattr("core.verifier.snarkjs.shutil.which", lambda name: None)
        with pytest.raises(SnarkjsError, match="Executable"):
            SnarkjsVerifier(vkey).verify({}, [1])

    @pytest.mark.parametrize(
        "returncode, stdout, expected",
        [(0, "[INFO]  snarkJS: OK!", True), (1, "", False), (0, "[ERROR] Invalid proof", False)],
    )
    def test_result_mapping(self, vkey, monkeypatch, returncode, stdout, expected):
        seen = {}

        def fake_run(cmd, **kwargs):
            seen["cmd"] = cmd
            return subprocess.CompletedProcess(cmd, returncode, stdout=stdout, stderr="")

        monkeypatch.setattr("core.verifier.snarkjs.shutil.which", lambda name: "/usr/bin/snarkjs")
        monkeypatch.setattr("core.verifier.snarkjs.subprocess.run", fake_run)

        assert SnarkjsVerifier(vkey, command=["npx", "snarkjs"]).verify({"pi_a": []}, [1, 2]) is expected
        assert seen["cmd"][:4] == ["npx", "snarkjs", "groth16", "verify"]

    def test_timeout(self, vkey, monkeypatch):
        def fake_run(cmd, **kwargs):
            raise subprocess.TimeoutExpired(cmd, 1)

        monkeypatch.setattr("core.verifier.snarkjs.shutil.which", lambda name: "/usr/bin/snarkjs")
        monkeypatch.setattr("core.verifier.snarkjs.subprocess.run", fake_run)
        with pytest.raises(SnarkjsError, match="timed out"):
            SnarkjsVerifier(vkey, timeout=1).verify({}, [1])
