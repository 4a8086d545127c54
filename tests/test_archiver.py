import asyncio

from autoreply_core.archiver import AttachmentArchiver, build_filename, sanitize, unique_path
from autoreply_core.events import Attachment

from conftest import FakeTransport


def test_build_filename():
    assert build_filename("alice", "cat picture.png", "2024-05-01") == "alice-2024-05-01-cat_picture.png"
    assert build_filename("alice", "archive.tar.gz", "2024-05-01") == "alice-2024-05-01-archive.tar.gz"
    assert build_filename("alice", "../../etc/passwd", "2024-05-01") == "alice-2024-05-01-passwd"
    assert build_filename("al/ice", "notes", "2024-05-01") == "al_ice-2024-05-01-notes"
    assert sanitize("é ü?.txt") == "____.txt"


def test_unique_path_appends_counter(tmp_path):
    (tmp_path / "a.png").write_bytes(b"1")
    (tmp_path / "a-1.png").write_bytes(b"2")
    assert unique_path(tmp_path, "a.png") == tmp_path / "a-2.png"
    assert unique_path(tmp_path, "b.png") == tmp_path / "b.png"


def test_archive_saves_each_attachment(tmp_path, make_event):
    transport = FakeTransport(content={"https://cdn/a.png": b"AAA", "https://cdn/b.txt": b"BBB"})
    archiver = AttachmentArchiver(transport, tmp_path / "media", today=lambda: "2024-05-01")
    event = make_event(
        attachments=(
            Attachment(url="https://cdn/a.png", filename="a.png"),
            Attachment(url="https://cdn/b.txt", filename="b.txt"),
        )
    )
    report = asyncio.run(archiver.archive(event))
    assert [p.name for p in report.saved] == ["alice-2024-05-01-a.png", "alice-2024-05-01-b.txt"]
    assert (tmp_path / "media" / "alice-2024-05-01-a.png").read_bytes() == b"AAA"
    assert report.failed == []


def test_same_name_twice_does_not_overwrite(tmp_path, make_event):
    transport = FakeTransport(content={"u1": b"first", "u2": b"second"})
    archiver = AttachmentArchiver(transport, tmp_path, today=lambda: "2024-05-01")
    event = make_event(attachments=(Attachment("u1", "x.png"), Attachment("u2", "x.png")))
    report = asyncio.run(archiver.archive(event))
    assert [p.read_bytes() for p in report.saved] == [b"first", b"second"]
    assert report.saved[1].name == "alice-2024-05-01-x-1.png"


def test_failed_attachment_is_isolated(tmp_path, make_event, caplog):
    transport = FakeTransport(fail_urls=("bad",))
    archiver = AttachmentArchiver(transport, tmp_path, today=lambda: "2024-05-01")
    event = make_event(attachments=(Attachment("bad", "bad.png"), Attachment("good", "good.png")))
    report = asyncio.run(archiver.archive(event))
    assert [p.name for p in report.saved] == ["alice-2024-05-01-good.png"]
    assert report.failed[0][0] == "bad.png"
    assert any("Error downloading attachment bad.png" in r.getMessage() for r in caplog.records)


def test_slow_fetch_times_out(tmp_path, make_event):
    class SlowTransport(FakeTransport):
        async def fetch_content(self, url):
            await asyncio.sleep(5)
            return b""

    archiver = AttachmentArchiver(SlowTransport(), tmp_path, fetch_timeout=0.01)
    report = asyncio.run(archiver.archive(make_event(attachments=(Attachment("u", "slow.bin"),))))
    assert report.saved == []
    assert report.failed == [("slow.bin", "timeout")]


def test_no_attachments_is_a_no_op(tmp_path, make_event):
    archiver = AttachmentArchiver(FakeTransport(), tmp_path / "media")
    report = asyncio.run(archiver.archive(make_event()))
    assert report.saved == [] and report.failed == []
    assert not (tmp_path / "media").exists()
