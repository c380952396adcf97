"""Tests for result collection and ZIP archiving."""

import asyncio
import io
import zipfile

from instrumentify.models.track import ProcessedResult, Track
from instrumentify.storage.archiver import ResultArchiver, build_zip
from instrumentify.storage.collector import ResultCollector
from instrumentify.storage.writer import ResultWriter


def _result(name, data=b"audio"):
    return ProcessedResult(file_name=name, audio_bytes=data)


class TestResultCollector:
    def test_concurrent_appends_are_all_kept(self):
        collector = ResultCollector()
        results = [_result(f"track {i}.wav") for i in range(50)]

        async def scenario():
            await asyncio.gather(*(collector.append(r) for r in results))

        asyncio.run(scenario())

        assert len(collector) == 50
        assert set(collector.snapshot()) == set(results)

    def test_snapshot_is_immutable_view(self):
        collector = ResultCollector()
        asyncio.run(collector.append(_result("a.wav", b"1234")))

        snapshot = collector.snapshot()
        asyncio.run(collector.append(_result("b.wav", b"56")))

        assert len(snapshot) == 1
        assert collector.file_names() == ["a.wav", "b.wav"]
        assert bool(collector)
        assert not ResultCollector()


class TestArchiver:
    def test_build_zip_keeps_duplicates(self):
        data = build_zip(
            [_result("Song.wav", b"one"), _result("Other.wav"), _result("Song.wav", b"two")]
        )

        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            assert archive.namelist() == ["Song.wav", "Other.wav", "Song (2).wav"]
            assert archive.read("Song.wav") == b"one"
            assert archive.read("Song (2).wav") == b"two"

    def test_empty_collector_writes_nothing(self, tmp_path):
        destination = tmp_path / "out.zip"

        assert asyncio.run(ResultArchiver().archive(ResultCollector(), destination)) is None
        assert not destination.exists()

    def test_archive_written_to_nested_path(self, tmp_path):
        collector = ResultCollector()
        track = Track(title="Blue Monday", artist="New Order")
        asyncio.run(collector.append(ProcessedResult.for_track(track, b"wav")))
        destination = tmp_path / "nested" / "dir" / "set.zip"

        path = asyncio.run(ResultArchiver().archive(collector, destination))

        assert path == destination
        with zipfile.ZipFile(destination) as archive:
            assert archive.namelist() == ["New Order - Blue Monday (Instrumental).wav"]


class TestResultWriter:
    def test_writes_each_result_as_a_file(self, tmp_path):
        writer = ResultWriter(tmp_path / "wav")

        path = asyncio.run(writer.write(_result("Song.wav", b"RIFF")))

        assert path == tmp_path / "wav" / "Song.wav"
        assert path.read_bytes() == b"RIFF"

    def test_never_overwrites_existing_files(self, tmp_path):
        (tmp_path / "Song.wav").write_bytes(b"from an earlier run")
        writer = ResultWriter(tmp_path)

        async def scenario():
            return await asyncio.gather(
                writer.write(_result("Song.wav", b"one")),
                writer.write(_result("Song.wav", b"two")),
            )

        paths = asyncio.run(scenario())

        assert sorted(p.name for p in paths) == ["Song (2).wav", "Song (3).wav"]
        assert (tmp_path / "Song.wav").read_bytes() == b"from an earlier run"
        assert sorted(p.read_bytes() for p in paths) == [b"one", b"two"]

def test_result_file_names_are_sanitized():
    track = Track(title='What/If: "Live"?', artist="AC/DC")

    name = ProcessedResult.for_track(track, b"").file_name

    assert "/" not in name
    assert ":" not in name
    assert name.endswith("(Instrumental).wav")
