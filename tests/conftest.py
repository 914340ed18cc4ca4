import shutil
from pathlib import Path

import pytest

from sortpics import config


class FakeMetadata:
    """
    In-memory stand-in for the exiftool backend.
    Tags are looked up by base name; `writes` records every write_tags call.
    """

    def __init__(self, tags_by_name=None, writable=True, write_ok=True):
        self.tags_by_name = tags_by_name or {}
        self.writable = writable
        self.write_ok = write_ok
        self.writes = []
        self.reads = []
        self.checked_formats = []

    def supported_type(self, path: Path):
        return config.EXT_TO_FORMAT.get(path.suffix.lower())

    def read_tags(self, path: Path):
        self.reads.append(path)
        return dict(self.tags_by_name.get(path.name, {}))

    def can_write(self, format_id: str) -> bool:
        self.checked_formats.append(format_id)
        return self.writable

    def write_tags(self, path: Path, tags, output_path: Path):
        self.writes.append((path, dict(tags), output_path))
        if not self.write_ok:
            return False, "Error: simulated failure"
        shutil.copyfile(path, output_path)
        with output_path.open("ab") as f:
            f.write(b"|rewritten")
        return True, "1 image files created"


@pytest.fixture
def fake_metadata():
    return FakeMetadata()


@pytest.fixture
def canon_tags():
    return {
        'DateTimeOriginal': '2020:05:01 10:30:00',
        'SubSecTimeOriginal': '45',
        'Make': 'CANON',
        'Model': 'Canon EOS 80D',
    }


@pytest.fixture
def src_dir(tmp_path):
    d = tmp_path / "src"
    d.mkdir()
    return d


@pytest.fixture
def dest_dir(tmp_path):
    d = tmp_path / "dest"
    d.mkdir()
    return d
