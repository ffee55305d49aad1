"""Tests for tracker fingerprinting and the retag sweep."""

from unittest.mock import AsyncMock, Mock

import pytest

from torrentify.core.fingerprint import FingerprintGate, compute_fingerprint
from torrentify.core.scheduler import TaskScheduler
from torrentify.core.stats import RunStatistics
from torrentify.error_handling import ExternalToolError

T1 = "https://t1.example/announce"
T2 = "https://t2.example/announce"


class TestComputeFingerprint:
    def test_order_and_duplicates_ignored(self):
        assert compute_fingerprint([T1, T2]) == compute_fingerprint([T2, T1, T1])

    def test_whitespace_ignored(self):
        assert compute_fingerprint([f" {T1} "]) == compute_fingerprint([T1])

    def test_different_sets_differ(self):
        assert compute_fingerprint([T1]) != compute_fingerprint([T1, T2])

    def test_is_sha256_hex(self):
        digest = compute_fingerprint([T1])

        assert len(digest) == 64
        int(digest, 16)


@pytest.fixture
def roots(tmp_path):
    out = tmp_path / "out"
    for rel in ("films/A/A.torrent", "series/B/B.torrent", "films/A/A.nfo"):
        path = out / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("x")
    # The category roots are nested under the output root; scanning both must not double count
    return [out, out / "films", out / "series"]


class TestFingerprintGate:
    def test_first_run_counts_as_changed(self, tmp_path):
        gate = FingerprintGate(tmp_path / "fp", [T1])

        assert gate.previous is None
        assert gate.changed

    def test_persist_then_unchanged(self, tmp_path):
        path = tmp_path / "state" / "fp"
        FingerprintGate(path, [T1, T2]).persist()

        gate = FingerprintGate(path, [T2, T1])

        assert not gate.changed
        assert path.read_text() == compute_fingerprint([T1, T2])

    def test_find_packages_deduplicates(self, roots):
        packages = FingerprintGate.find_packages(roots)

        assert [p.name for p in packages] == ["A.torrent", "B.torrent"]

    @pytest.mark.asyncio
    async def test_sweep_skipped_when_unchanged(self, tmp_path, roots):
        path = tmp_path / "fp"
        FingerprintGate(path, [T1]).persist()
        updater = AsyncMock()
        stats = RunStatistics()

        report = await FingerprintGate(path, [T1]).sweep(roots, updater, TaskScheduler(2), stats)

        assert not report.triggered
        updater.update.assert_not_called()
        assert stats.get("retag_scanned") == 0

    @pytest.mark.asyncio
    async def test_sweep_retags_every_torrent_and_persists(self, tmp_path, roots):
        path = tmp_path / "fp"
        FingerprintGate(path, [T1]).persist()
        updater = AsyncMock()
        stats = RunStatistics()
        gate = FingerprintGate(path, [T1, T2])

        report = await gate.sweep(roots, updater, TaskScheduler(2), stats)

        assert report.triggered
        assert report.scanned == 2
        assert report.updated == 2
        assert updater.update.await_count == 2
        for call in updater.update.await_args_list:
            assert call.args[1] == [T1, T2]
        assert stats.get("retag_scanned") == 2
        assert stats.get("retag_updated") == 2
        assert path.read_text() == compute_fingerprint([T1, T2])
        assert not FingerprintGate(path, [T2, T1]).changed

    @pytest.mark.asyncio
    async def test_failed_retag_counted_and_digest_still_persisted(self, tmp_path, roots):
        path = tmp_path / "fp"
        updater = AsyncMock()
        updater.update.side_effect = [None, ExternalToolError("mkbrr", exit_code=1)]
        stats = RunStatistics()

        report = await FingerprintGate(path, [T1]).sweep(roots, updater, TaskScheduler(1), stats)

        assert report.updated == 1
        assert report.failed == 1
        assert stats.get("retag_updated") == 1
        assert stats.get("retag_skipped") == 1
        assert path.read_text() == compute_fingerprint([T1])

    @pytest.mark.asyncio
    async def test_interrupted_sweep_keeps_previous_digest(self, tmp_path, roots):
        path = tmp_path / "fp"
        FingerprintGate(path, [T1]).persist()
        scheduler = Mock()
        scheduler.run = AsyncMock(side_effect=RuntimeError("killed mid-sweep"))

        with pytest.raises(RuntimeError):
            await FingerprintGate(path, [T1, T2]).sweep(
                roots,
                AsyncMock(),
                scheduler,
                RunStatistics(),
            )

        assert path.read_text() == compute_fingerprint([T1])
        assert FingerprintGate(path, [T1, T2]).changed

    @pytest.mark.asyncio
    async def test_sweep_with_no_torrents(self, tmp_path):
        stats = RunStatistics()
        report = await FingerprintGate(tmp_path / "fp", [T1]).sweep(
            [tmp_path / "nothing-here"],
            AsyncMock(),
            TaskScheduler(1),
            stats,
        )

        assert report.triggered
        assert report.scanned == 0
        assert (tmp_path / "fp").exists()
