from datetime import datetime
from pathlib import Path

import pytest

from conftest import FakeMetadata
from sortpics.exceptions import DestinationError, FileOperationError
from sortpics.models import CollisionPolicy, DestinationCandidate, Disposition, MediaFile, SortOptions
from sortpics.organization import mover as mover_module
from sortpics.organization.collision import CollisionResolver
from sortpics.organization.mover import FileMover, swap_in
from sortpics.organization.rules import DestinationPlanner, select_root
from sortpics.scanning.hasher import FileHasher

DT = datetime(2020, 5, 1, 10, 30, 0)


# --- Destination planning ---

def test_plan_default_layout(tmp_path):
    planner = DestinationPlanner(SortOptions(dest_root=tmp_path))
    cand = planner.plan(DT, 45, "CanonEos80d", "IMG_0001.JPG")

    assert cand.path == tmp_path / "2020" / "05" / "2020-05-01" / "20200501-103000.45_CanonEos80d.jpg"
    assert cand.filename == "20200501-103000.45_CanonEos80d.jpg"


def test_plan_is_deterministic(tmp_path):
    planner = DestinationPlanner(SortOptions(dest_root=tmp_path))
    first = planner.plan(DT, 3, "Unknown", "a.jpeg")
    second = planner.plan(DT, 3, "Unknown", "a.jpeg")
    assert first == second
    assert first.filename == "20200501-103000.03_Unknown.jpeg"


def test_plan_flat_nosubsec_custom_formats(tmp_path):
    opts = SortOptions(dest_root=tmp_path, flat=True, subsec=False, file_format="%Y-%m-%d_%H%M")
    cand = DestinationPlanner(opts).plan(DT, 45, "Sony", "clip.MOV")
    assert cand.path == tmp_path / "2020-05-01_1030_Sony.mov"

    opts = SortOptions(dest_root=tmp_path, path_format="%Y/%B")
    cand = DestinationPlanner(opts).plan(DT, 0, "Sony", "clip.mov")
    assert cand.path.parent == tmp_path / "2020" / "May"


def test_plan_empty_device_tag_drops_segment(tmp_path):
    cand = DestinationPlanner(SortOptions(dest_root=tmp_path)).plan(DT, 0, "", "a.jpg")
    assert cand.filename == "20200501-103000.00.jpg"


def test_raw_files_go_to_raw_root(tmp_path):
    raw_root = tmp_path / "raw"
    opts = SortOptions(dest_root=tmp_path / "main", raw_root=raw_root)
    planner = DestinationPlanner(opts)

    assert planner.plan(DT, 0, "NikonD750", "DSC_1.NEF").path.is_relative_to(raw_root)
    assert planner.plan(DT, 0, "NikonD750", "DSC_1.JPG").path.is_relative_to(tmp_path / "main")


def test_select_root_without_raw_root(tmp_path):
    assert select_root(".cr2", tmp_path, None) == tmp_path
    assert select_root(".CR2", tmp_path, tmp_path / "r") == tmp_path / "r"
    assert select_root(".jpg", tmp_path, tmp_path / "r") == tmp_path


def test_with_increment_pads_counter(tmp_path):
    cand = DestinationCandidate(tmp_path / "20200501-103000.45_Canon.jpg")
    assert cand.with_increment(1).filename == "20200501-103000.45_Canon_0001.jpg"
    assert cand.with_increment(12).filename == "20200501-103000.45_Canon_0012.jpg"


# --- Collision resolution ---

class CountingHasher(FileHasher):
    def __init__(self):
        self.calls = []

    def digest(self, path):
        self.calls.append(path)
        return super().digest(path)


def test_free_destination_proceeds_without_hashing(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"a")
    hasher = CountingHasher()

    d = CollisionResolver(hasher).resolve(src, DestinationCandidate(tmp_path / "out.jpg"), CollisionPolicy())
    assert d == Disposition.proceed(tmp_path / "out.jpg")
    assert hasher.calls == []


def test_duplicate_keeps_source_without_force(tmp_path):
    src = tmp_path / "a.jpg"
    dest = tmp_path / "out.jpg"
    src.write_bytes(b"same")
    dest.write_bytes(b"same")

    d = CollisionResolver().resolve(src, DestinationCandidate(dest), CollisionPolicy())
    assert d.kind == Disposition.DUPLICATE
    assert not d.source_deleted
    assert src.exists()


def test_duplicate_with_force_deletes_source_only(tmp_path):
    src = tmp_path / "a.jpg"
    dest = tmp_path / "out.jpg"
    src.write_bytes(b"same")
    dest.write_bytes(b"same")

    d = CollisionResolver().resolve(src, DestinationCandidate(dest), CollisionPolicy(force_delete=True))
    assert d.kind == Disposition.DUPLICATE
    assert not src.exists()
    assert d.source_deleted
    assert dest.read_bytes() == b"same"


def test_force_in_dry_run_keeps_source(tmp_path):
    src = tmp_path / "a.jpg"
    dest = tmp_path / "out.jpg"
    src.write_bytes(b"same")
    dest.write_bytes(b"same")

    d = CollisionResolver(dry_run=True).resolve(src, DestinationCandidate(dest), CollisionPolicy(force_delete=True))
    assert src.exists()
    assert d.source_deleted


def test_name_collision_without_increment_skips(tmp_path):
    src = tmp_path / "a.jpg"
    dest = tmp_path / "out.jpg"
    src.write_bytes(b"new")
    dest.write_bytes(b"old")

    d = CollisionResolver().resolve(src, DestinationCandidate(dest), CollisionPolicy(force_delete=True))
    assert d == Disposition.name_collision()
    assert src.exists()
    assert dest.read_bytes() == b"old"


def test_increment_walks_to_first_free_name(tmp_path):
    dest = tmp_path / "out.jpg"
    dest.write_bytes(b"v0")
    (tmp_path / "out_0001.jpg").write_bytes(b"v1")
    src = tmp_path / "a.jpg"
    src.write_bytes(b"v2")
    hasher = CountingHasher()

    d = CollisionResolver(hasher).resolve(src, DestinationCandidate(dest), CollisionPolicy(increment=True))
    assert d == Disposition.proceed(tmp_path / "out_0002.jpg")
    # source once, each occupied candidate once
    assert hasher.calls.count(src) == 1
    assert len(hasher.calls) == 3


def test_increment_finds_existing_duplicate(tmp_path):
    dest = tmp_path / "out.jpg"
    dest.write_bytes(b"v0")
    (tmp_path / "out_0001.jpg").write_bytes(b"v1")
    src = tmp_path / "a.jpg"
    src.write_bytes(b"v1")

    d = CollisionResolver().resolve(src, DestinationCandidate(dest), CollisionPolicy(increment=True))
    assert d == Disposition.duplicate(tmp_path / "out_0001.jpg")


def test_increment_is_monotonic_for_many_files(tmp_path):
    dest = tmp_path / "out.jpg"
    dest.write_bytes(b"original")
    resolver = CollisionResolver()
    placed = []

    for i in range(4):
        src = tmp_path / f"src{i}.jpg"
        src.write_bytes(f"content {i}".encode())
        d = resolver.resolve(src, DestinationCandidate(dest), CollisionPolicy(increment=True))
        d.dest_path.write_bytes(src.read_bytes())
        placed.append(d.dest_path.name)

    assert placed == ["out_0001.jpg", "out_0002.jpg", "out_0003.jpg", "out_0004.jpg"]


def test_source_already_in_place_is_never_deleted(tmp_path):
    dest = tmp_path / "out.jpg"
    dest.write_bytes(b"x")

    d = CollisionResolver().resolve(dest, DestinationCandidate(dest), CollisionPolicy(force_delete=True))
    assert d.kind == Disposition.DUPLICATE
    assert dest.exists()


# --- Transfer ---

def make_media(path: Path, **kwargs) -> MediaFile:
    return MediaFile(source_path=path, format_id='JPEG', timestamp=DT, **kwargs)


def test_copy_creates_missing_directories(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "2020" / "05" / "x.jpg"

    assert FileMover(FakeMetadata()).execute(make_media(src), dest)
    assert dest.read_bytes() == b"data"
    assert src.exists()


def test_move_removes_source(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"

    assert FileMover(FakeMetadata(), move_mode=True).execute(make_media(src), dest)
    assert dest.exists()
    assert not src.exists()


def test_dry_run_touches_nothing(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"

    assert FileMover(FakeMetadata(), move_mode=True, dry_run=True).execute(make_media(src), dest)
    assert src.exists()
    assert not dest.parent.exists()


def test_unwritable_destination_is_fatal(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    blocker = tmp_path / "out"
    blocker.write_bytes(b"i am a file")

    with pytest.raises(DestinationError):
        FileMover(FakeMetadata()).execute(make_media(src), blocker / "x.jpg")


def test_transfer_failure_is_reported_not_raised(tmp_path):
    missing = tmp_path / "gone.jpg"
    dest = tmp_path / "out" / "x.jpg"
    assert not FileMover(FakeMetadata()).execute(make_media(missing), dest)


def delta_media(src: Path) -> MediaFile:
    media = make_media(src, subsec=45)
    media.original_timestamp = DT
    media.timestamp = datetime(2020, 5, 2, 10, 30, 0)
    return media


def test_rewrite_after_delta_swaps_file_in(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"
    meta = FakeMetadata({"x.jpg": {'DateTimeOriginal': '2020:05:01 10:30:00', 'CreateDate': '1999:01:01 00:00:00'}})

    assert FileMover(meta).execute(delta_media(src), dest)

    assert dest.read_bytes() == b"data|rewritten"
    assert meta.writes[0][1] == {'DateTimeOriginal': '2020:05:02 10:30:00'}
    leftovers = sorted(p.name for p in dest.parent.iterdir())
    assert leftovers == ["x.jpg"]


def test_rewrite_skipped_for_unwritable_format(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"
    meta = FakeMetadata({"x.jpg": {'DateTimeOriginal': '2020:05:01 10:30:00'}}, writable=False)

    assert FileMover(meta).execute(delta_media(src), dest)
    assert dest.read_bytes() == b"data"
    assert meta.writes == []


def test_rewrite_failure_keeps_transferred_file(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"
    meta = FakeMetadata({"x.jpg": {'DateTimeOriginal': '2020:05:01 10:30:00'}}, write_ok=False)

    assert FileMover(meta).execute(delta_media(src), dest)
    assert dest.read_bytes() == b"data"
    assert sorted(p.name for p in dest.parent.iterdir()) == ["x.jpg"]


def test_no_rewrite_without_delta(tmp_path):
    src = tmp_path / "a.jpg"
    src.write_bytes(b"data")
    meta = FakeMetadata({"x.jpg": {'DateTimeOriginal': '2020:05:01 10:30:00'}})

    FileMover(meta).execute(make_media(src), tmp_path / "x.jpg")
    assert meta.reads == []


def test_swap_in_restores_backup_on_failure(tmp_path, monkeypatch):
    dest = tmp_path / "x.jpg"
    staged = tmp_path / ".x.tmp.jpg"
    dest.write_bytes(b"original")
    staged.write_bytes(b"new")

    real_replace = Path.replace

    def flaky_replace(self, target):
        if self == staged:
            raise OSError("disk full")
        return real_replace(self, target)

    monkeypatch.setattr(mover_module.Path, "replace", flaky_replace)

    with pytest.raises(FileOperationError):
        swap_in(staged, dest)

    assert dest.read_bytes() == b"original"
    assert not (tmp_path / "x.jpg.bak").exists()


def test_swap_in_success(tmp_path):
    dest = tmp_path / "x.jpg"
    staged = tmp_path / ".x.tmp.jpg"
    dest.write_bytes(b"original")
    staged.write_bytes(b"new")

    swap_in(staged, dest)

    assert dest.read_bytes() == b"new"
    assert not staged.exists()
    assert not (tmp_path / "x.jpg.bak").exists()


def test_rewrite_checks_the_sorted_file_format(tmp_path):
    src = tmp_path / "a.tif"
    src.write_bytes(b"data")
    dest = tmp_path / "out" / "x.jpg"
    meta = FakeMetadata({"x.jpg": {'DateTimeOriginal': '2020:05:01 10:30:00'}})
    media = delta_media(src)
    media.format_id = 'TIFF'

    assert FileMover(meta).execute(media, dest)
    assert meta.checked_formats == ['TIFF']
