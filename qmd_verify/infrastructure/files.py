"""Local filesystem implementation of the UploadSource port."""

import logging
import os
from pathlib import Path
from typing import List, Sequence

from ..application.domain import FileUpload, UploadSource
from ..application.exceptions import InputError

_QMD_SUFFIX = ".qmd"


def _is_qmd(path: Path) -> bool:
    return path.suffix.lower() == _QMD_SUFFIX


def determine_base_dir(targets: Sequence[str]) -> Path:
    """
    Picks the directory relative paths are computed against.

    This is the first target that is a directory, or else the parent of
    the first target.
    """

    for target in targets:
        path = Path(target)
        if path.is_dir():
            return path.resolve()

    if targets:
        return Path(targets[0]).resolve().parent

    return Path.cwd()


class LocalQmdFiles(UploadSource):
    """Resolves files and directories into .qmd uploads."""

    def __init__(self):
        """Initializes the file source."""
        self.logger = logging.getLogger(self.__class__.__name__)

    def validate(self, path: Path):
        """
        Checks that an explicitly named file can be uploaded.

        Raises:
            InputError: If the file is not a non-empty, existing .qmd file.
        """

        if not _is_qmd(path):
            raise InputError(f"file must have .qmd extension: {path}")

        try:
            stat = path.stat()
        except FileNotFoundError:
            raise InputError(f"file does not exist: {path}") from None
        except OSError as e:
            raise InputError(f"failed to access file: {e}") from e

        if path.is_dir():
            raise InputError(f"path is a directory, not a file: {path}")

        if stat.st_size == 0:
            raise InputError(f"file is empty: {path}")

    def _walk(self, directory: Path) -> List[Path]:
        """Lists the non-empty .qmd files below a directory, sorted."""

        found = []
        for root, dirs, names in os.walk(directory, onerror=self._walk_error):
            dirs.sort()
            for name in sorted(names):
                path = Path(root) / name
                if not _is_qmd(path):
                    continue
                try:
                    size = path.stat().st_size
                except OSError as e:
                    raise InputError(f"failed to access file {path}: {e}") from e
                if size == 0:
                    self.logger.warning(f"Skipping empty file {path}")
                    continue
                found.append(path)
        return found

    @staticmethod
    def _walk_error(error: OSError):
        raise InputError(f"failed to walk directory: {error}") from error

    def _resolve(self, targets: Sequence[str]) -> List[Path]:
        paths = []
        for target in targets:
            path = Path(target)
            if path.is_dir():
                paths.extend(p.resolve() for p in self._walk(path))
            else:
                self.validate(path)
                paths.append(path.resolve())
        return paths

    def _read(self, path: Path, base_dir: Path) -> FileUpload:
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InputError(f"failed to read file {path}: {e}") from e

        try:
            relative = path.relative_to(base_dir).as_posix()
        except ValueError:
            relative = path.name

        return FileUpload(filename=path.name, content=content, path=relative)

    def collect(self, targets: Sequence[str]) -> List[FileUpload]:
        """
        Resolves targets into uploads, reading every file into memory.

        This public method fulfills the UploadSource port contract. All
        files are validated and read before anything is returned, so a
        single unreadable file aborts the whole collection.

        Args:
            targets: Paths to .qmd files or directories containing them.

        Returns:
            The uploads, in target order and sorted within directories.

        Raises:
            InputError: If a target is missing, invalid or unreadable.
        """

        base_dir = determine_base_dir(targets)
        paths = self._resolve(targets)
        uploads = [self._read(path, base_dir) for path in paths]

        self.logger.info(
            f"Collected {len(uploads)} .qmd file(s) relative to {base_dir}"
        )
        return uploads
