import json
import logging
import shutil
import subprocess
from pathlib import Path
from typing import Dict, Optional, Set, Tuple

import exifread

from .. import config
from ..exceptions import MetadataExtractionError


class ExifTool:
    """
    Wraps the 'exiftool' command line utility.
    Must be installed and on the system PATH.

    Interface shared with ExifReadBackend:
      supported_type(path) -> format id or None
      read_tags(path) -> {tag name: string value}
      can_write(format_id) -> bool
      write_tags(path, tags, output_path) -> (ok, message)
    """

    def __init__(self, executable: str = "exiftool"):
        self.executable = executable
        self._writable: Optional[Set[str]] = None

    @staticmethod
    def available(executable: str = "exiftool") -> bool:
        return shutil.which(executable) is not None

    def supported_type(self, path: Path) -> Optional[str]:
        return config.EXT_TO_FORMAT.get(path.suffix.lower())

    def read_tags(self, path: Path) -> Dict[str, str]:
        # -j = JSON output, one object per file
        cmd = [self.executable, "-j", str(path)]
        try:
            out = subprocess.run(cmd, capture_output=True, text=True, check=False).stdout
            data_list = json.loads(out) if out.strip() else []
        except (OSError, ValueError) as e:
            raise MetadataExtractionError(f"exiftool failed for {path}: {e}") from e

        if not data_list:
            raise MetadataExtractionError(f"exiftool returned no data for {path}")

        tags = data_list[0]
        if tags.get("Error"):
            raise MetadataExtractionError(f"exiftool: {tags['Error']} ({path})")

        # Lists and structs are not needed for sorting
        return {
            name: str(value).strip()
            for name, value in tags.items()
            if not isinstance(value, (dict, list))
        }

    def can_write(self, format_id: str) -> bool:
        if self._writable is None:
            self._writable = self._list_writable()
        return format_id.upper() in self._writable

    def write_tags(self, path: Path, tags: Dict[str, str], output_path: Path) -> Tuple[bool, str]:
        """
        Writes a copy of `path` carrying the new tag values to `output_path`.
        The source file is never modified.
        """
        cmd = [self.executable, "-o", str(output_path)]
        cmd.extend(f"-{name}={value}" for name, value in tags.items())
        cmd.append(str(path))

        try:
            result = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            return False, str(e)

        if result.returncode != 0:
            return False, (result.stderr or result.stdout).strip()
        return True, result.stdout.strip()

    def _list_writable(self) -> Set[str]:
        try:
            out = subprocess.run(
                [self.executable, "-listwf"], capture_output=True, text=True, check=False
            ).stdout
        except OSError as e:
            logging.warning(f"Could not list writable formats: {e}")
            return set()

        # First line is a header ("Writable file extensions:")
        lines = out.splitlines()[1:]
        return {token.upper() for line in lines for token in line.split()}


class ExifReadBackend:
    """
    Read-only fallback using 'exifread' (fast, Python-native).
    Video containers are reported as supported but yield no tags.
    """

    def supported_type(self, path: Path) -> Optional[str]:
        return config.EXT_TO_FORMAT.get(path.suffix.lower())

    def read_tags(self, path: Path) -> Dict[str, str]:
        if self.supported_type(path) not in config.EXIFREAD_FORMATS:
            return {}

        try:
            with path.open('rb') as f:
                # details=False skips makernotes and thumbnails
                raw = exifread.process_file(f, details=False)
        except Exception as e:
            raise MetadataExtractionError(f"ExifRead failed for {path}: {e}") from e

        tags: Dict[str, str] = {}
        for key, value in raw.items():
            # "EXIF DateTimeOriginal" -> "DateTimeOriginal", first IFD wins
            name = key.split(' ', 1)[-1]
            if name not in tags:
                tags[name] = str(value).strip()
        return tags

    def can_write(self, format_id: str) -> bool:
        return False

    def write_tags(self, path: Path, tags: Dict[str, str], output_path: Path) -> Tuple[bool, str]:
        return False, "exifread backend is read-only"


def open_metadata():
    """Returns the exiftool backend when available, else the exifread reader."""
    if ExifTool.available():
        return ExifTool()

    logging.warning("exiftool not found on PATH; using exifread (metadata rewrite disabled).")
    return ExifReadBackend()
