"""Tests for the clean / smudge / textconv operations."""

from __future__ import annotations

from pathlib import Path
from typing import Tuple

import pytest

from gitagenix import crypto
from gitagenix.errors import CryptoError, NoRuleFound, NotEncrypted
from gitagenix.filters import AgenixFilter, textconv
from gitagenix.utils import content_digest

from helpers import FakeRepository, make_identity

FILE = "secrets/db.txt"


@pytest.fixture
def agenix(fake_repo: FakeRepository) -> AgenixFilter:
    return AgenixFilter(fake_repo)


class TestClean:
    def test_encrypts_for_rule_recipients(
        self, agenix: AgenixFilter, rules_file: Path, identity: Tuple[Path, str]
    ) -> None:
        key_file, _ = identity
        ciphertext = agenix.clean(b"password=hunter2\n", FILE, rules_file)

        assert crypto.is_encrypted(ciphertext)
        assert crypto.decrypt([key_file], ciphertext) == b"password=hunter2\n"

    def test_records_digest(
        self, agenix: AgenixFilter, rules_file: Path, fake_repo: FakeRepository
    ) -> None:
        agenix.clean(b"v1", FILE, rules_file)
        assert fake_repo.sidecar_store().read(FILE) == content_digest(b"v1")

    def test_without_sidecar_every_clean_differs(
        self, agenix: AgenixFilter, rules_file: Path, fake_repo: FakeRepository
    ) -> None:
        first = agenix.clean(b"v1", FILE, rules_file)
        fake_repo.delete_all_sidecars()
        second = agenix.clean(b"v1", FILE, rules_file)

        assert first != second

    def test_unchanged_plaintext_returns_committed_blob(
        self, agenix: AgenixFilter, rules_file: Path, fake_repo: FakeRepository
    ) -> None:
        committed = agenix.clean(b"v1", FILE, rules_file)
        fake_repo.commit(FILE, committed)

        assert agenix.clean(b"v1", FILE, rules_file) == committed
        assert agenix.clean(b"v1", FILE, rules_file) == committed

    def test_changed_plaintext_is_reencrypted(
        self,
        agenix: AgenixFilter,
        rules_file: Path,
        fake_repo: FakeRepository,
        identity: Tuple[Path, str],
    ) -> None:
        key_file, _ = identity
        committed = agenix.clean(b"v1", FILE, rules_file)
        fake_repo.commit(FILE, committed)

        updated = agenix.clean(b"v2", FILE, rules_file)

        assert updated != committed
        assert crypto.decrypt([key_file], updated) == b"v2"
        assert fake_repo.sidecar_store().read(FILE) == content_digest(b"v2")

    def test_unchanged_but_nothing_committed_is_reencrypted(
        self,
        agenix: AgenixFilter,
        rules_file: Path,
        fake_repo: FakeRepository,
        identity: Tuple[Path, str],
    ) -> None:
        key_file, _ = identity
        first = agenix.clean(b"v1", FILE, rules_file)
        second = agenix.clean(b"v1", FILE, rules_file)

        assert crypto.decrypt([key_file], second) == b"v1"
        assert second != first
        assert fake_repo.sidecar_store().read(FILE) == content_digest(b"v1")

    def test_missing_rule_propagates(
        self, agenix: AgenixFilter, rules_file: Path, fake_repo: FakeRepository
    ) -> None:
        with pytest.raises(NoRuleFound):
            agenix.clean(b"data", "secrets/other.txt", rules_file)

        # A failed clean must not claim the plaintext was stored
        assert fake_repo.sidecar_store().read("secrets/other.txt") is None


class TestSmudge:
    def test_round_trip(
        self, agenix: AgenixFilter, rules_file: Path, identity: Tuple[Path, str]
    ) -> None:
        key_file, _ = identity
        plaintext = b"\x00binary\xffpayload"
        ciphertext = agenix.clean(plaintext, FILE, rules_file)

        assert agenix.smudge(ciphertext, [key_file], FILE) == plaintext

    def test_records_digest(
        self,
        agenix: AgenixFilter,
        fake_repo: FakeRepository,
        identity: Tuple[Path, str],
    ) -> None:
        key_file, public_key = identity
        agenix.smudge(crypto.encrypt([public_key], b"v1"), [key_file], FILE)

        assert fake_repo.sidecar_store().read(FILE) == content_digest(b"v1")

    def test_rejects_plaintext(
        self, agenix: AgenixFilter, fake_repo: FakeRepository, identity: Tuple[Path, str]
    ) -> None:
        key_file, _ = identity
        with pytest.raises(NotEncrypted):
            agenix.smudge(b"password=hunter2\n", [key_file], FILE)

        assert fake_repo.sidecar_store().read(FILE) is None

    def test_wrong_identity(
        self, agenix: AgenixFilter, identity: Tuple[Path, str], tmp_path: Path
    ) -> None:
        _, public_key = identity
        stranger, _ = make_identity(tmp_path, "stranger.txt")
        with pytest.raises(CryptoError):
            agenix.smudge(crypto.encrypt([public_key], b"v1"), [stranger], FILE)


class TestCheckoutCycle:
    def test_smudged_file_cleans_to_committed_blob(
        self,
        agenix: AgenixFilter,
        rules_file: Path,
        fake_repo: FakeRepository,
        identity: Tuple[Path, str],
    ) -> None:
        key_file, public_key = identity
        committed = crypto.encrypt([public_key], b"v1")
        fake_repo.commit(FILE, committed)

        plaintext = agenix.smudge(committed, [key_file], FILE)
        assert agenix.clean(plaintext, FILE, rules_file) == committed
        assert agenix.clean(plaintext, FILE, rules_file) == committed


class TestTextconv:
    def test_decrypts(self, tmp_path: Path, identity: Tuple[Path, str]) -> None:
        key_file, public_key = identity
        stored = tmp_path / "db.txt"
        stored.write_bytes(crypto.encrypt([public_key], b"secret\n"))

        assert textconv(stored, [key_file]) == b"secret\n"

    def test_plain_file_shown_as_is(self, tmp_path: Path, identity: Tuple[Path, str]) -> None:
        key_file, _ = identity
        working_copy = tmp_path / "db.txt"
        working_copy.write_bytes(b"secret\n")

        assert textconv(working_copy, [key_file]) == b"secret\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            textconv(tmp_path / "missing", [])
