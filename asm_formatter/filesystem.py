"""Filesystem and encoding helpers for asm-formatter."""

from __future__ import annotations

import os
import stat
import tempfile
from collections.abc import Callable
from pathlib import Path

from .constants import ASM_EXTENSIONS, DEFAULT_MAX_FILE_SIZE
from .exceptions import MalformedInputError, UnsupportedOperationError
from .models import SourceText

MAX_FILE_SIZE_ENV_VAR = "ASMFORMAT_MAX_FILE_SIZE"

# Python codec used for each supported encoding. ANSI is read byte for byte.
CODECS = {
    "ansi": "latin-1",
    "utf8": "utf-8",
    "utf16le": "utf-16-le",
}

# Longer marks first: the UTF-32LE mark starts with the UTF-16LE one.
BYTE_ORDER_MARKS = (
    (b"\xff\xfe\x00\x00", "UTF-32LE"),
    (b"\x00\x00\xfe\xff", "UTF-32BE"),
    (b"\xef\xbb\xbf", "UTF-8"),
    (b"\xff\xfe", "UTF-16LE"),
    (b"\xfe\xff", "UTF-16BE"),
)

BOM_ENCODINGS = {
    "UTF-8": "utf8",
    "UTF-16LE": "utf16le",
}


def get_max_file_size(default: int = DEFAULT_MAX_FILE_SIZE) -> int:
    """Read the size limit from ``ASMFORMAT_MAX_FILE_SIZE``.

    Args:
        default: Limit in bytes used when the variable is not set.

    Returns:
        int: Size limit in bytes.

    Raises:
        ValueError: If the variable holds anything but a positive integer.

    Examples:
        os.environ["ASMFORMAT_MAX_FILE_SIZE"] = "65536"
        get_max_file_size()  # 65536
    """
    raw_value = os.environ.get(MAX_FILE_SIZE_ENV_VAR)
    if raw_value is None:
        return default

    try:
        limit = int(raw_value.strip())
    except ValueError:
        limit = 0
    if limit <= 0:
        raise ValueError(
            f"{MAX_FILE_SIZE_ENV_VAR} must be a positive number of bytes, got {raw_value!r}"
        )
    return limit


def traverses_symlink(path: Path) -> bool:
    """Tell whether `path` itself or one of its ancestors is a symbolic link."""
    for part in (path, *path.parents):
        try:
            if part.is_symlink():
                return True
        except OSError:
            continue
    return False


def normalize_filepath(raw_path: str) -> Path:
    """Turn a user-supplied path into the absolute path of a regular file.

    Args:
        raw_path: Path to an assembly file, absolute or relative to the
            working directory. ``~`` is expanded.

    Returns:
        Path: Resolved absolute path.

    Raises:
        ValueError: If the path is missing, is not a regular file, or goes
            through a symbolic link.

    Examples:
        normalize_filepath("src/main.asm")
    """
    path = Path(raw_path).expanduser()
    if traverses_symlink(path):
        raise ValueError(f"Symlinks are not supported: {path}")

    try:
        resolved = path.resolve(strict=True)
    except FileNotFoundError as error:
        raise ValueError(f"{path} does not exist.") from error
    except OSError as error:
        raise ValueError(f"Cannot resolve {path}: {error}") from error

    if not resolved.is_file():
        raise ValueError(f"{resolved} is not a regular file.")
    return resolved


def is_source_file(path: Path) -> bool:
    return path.suffix.lower() in ASM_EXTENSIONS


def collect_source_files(directory: Path, recurse: bool = False) -> list[Path]:
    """Find assembly source files in a directory.

    Symlinked files and directories are skipped. Suffixes are compared
    case-insensitively.

    Args:
        directory: Directory to search.
        recurse: Also search subdirectories.

    Returns:
        list[Path]: Matching regular files in sorted order.

    Raises:
        ValueError: If `directory` is not a directory or is a symlink.

    Examples:
        collect_source_files(Path("src"), recurse=True)
    """
    if traverses_symlink(directory):
        raise ValueError(f"Symlinks are not supported: {directory}")
    if not directory.is_dir():
        raise ValueError(f"{directory} is not a directory.")

    found: list[Path] = []
    pending = [directory.resolve()]
    while pending:
        current = pending.pop()
        for entry in current.iterdir():
            if entry.is_symlink():
                continue
            if entry.is_dir():
                if recurse:
                    pending.append(entry)
                continue
            if entry.is_file() and is_source_file(entry):
                found.append(entry)

    return sorted(found)


def collect_file_stat(filepath: Path) -> os.stat_result:
    """Stat a file without following links and insist on a regular file.

    Raises:
        IOError: If the file cannot be stat'ed, is a link, or is not a
            regular file.
    """
    try:
        file_stat = os.lstat(filepath)
    except OSError as error:
        raise IOError(f"Cannot access {filepath}: {error}") from error

    if stat.S_ISLNK(file_stat.st_mode):
        raise IOError(f"Symlinks are not supported: {filepath}")
    if not stat.S_ISREG(file_stat.st_mode):
        raise IOError(f"{filepath} is not a regular file.")
    return file_stat


def enforce_file_size(file_stat: os.stat_result, max_size: int, filepath: Path):
    if file_stat.st_size > max_size:
        raise IOError(f"{filepath} exceeds the maximum allowed size of {max_size} bytes.")


def _fingerprint(file_stat: os.stat_result) -> tuple:
    return (
        getattr(file_stat, "st_ino", None),
        getattr(file_stat, "st_dev", None),
        file_stat.st_size,
        file_stat.st_mtime_ns,
    )


def ensure_file_unchanged(
    before: os.stat_result, after: os.stat_result, filepath: Path
):
    """Refuse to continue when a file changed between two stat calls.

    Args:
        before: Stat taken when processing started.
        after: Stat taken just now.
        filepath: File the stats belong to.

    Raises:
        IOError: If identity, size or modification time differ.
    """
    if _fingerprint(before) != _fingerprint(after):
        raise IOError(f"{filepath} was modified while being formatted; not writing it.")


def read_bytes(filepath: Path) -> bytes:
    try:
        return filepath.read_bytes()
    except OSError as error:
        raise IOError(f"Cannot read {filepath}: {error}") from error


def detect_bom(data: bytes) -> tuple[str | None, bytes]:
    """Identify the byte order mark at the start of `data`.

    Returns:
        tuple[str | None, bytes]: Name of the marked encoding (for example
            ``"UTF-8"``) and the mark itself, or ``(None, b"")``.

    Examples:
        detect_bom(b"\\xef\\xbb\\xbfmov")  # ("UTF-8", b"\\xef\\xbb\\xbf")
    """
    for mark, name in BYTE_ORDER_MARKS:
        if data.startswith(mark):
            return name, mark
    return None, b""


def decode_source(
    data: bytes,
    encoding: str,
    filepath: Path | None = None,
    warn: Callable[[str], None] | None = None,
) -> SourceText:
    """Decode raw file bytes, honouring any byte order mark.

    A UTF-8 or UTF-16LE mark wins over the requested encoding; a warning is
    emitted when the two disagree.

    Args:
        data: Raw file content.
        encoding: Requested encoding (``"ansi"``, ``"utf8"`` or ``"utf16le"``).
        filepath: Path used in messages.
        warn: Optional callback for non-fatal diagnostics.

    Returns:
        SourceText: Decoded text with the encoding and mark used.

    Raises:
        UnsupportedOperationError: If the mark names an unsupported encoding
            or `encoding` is unknown.
        MalformedInputError: If the bytes are not valid in the chosen encoding.
    """
    label = filepath if filepath is not None else "source"
    bom_name, bom = detect_bom(data)

    if bom_name is not None:
        bom_encoding = BOM_ENCODINGS.get(bom_name)
        if bom_encoding is None:
            raise UnsupportedOperationError(f"{label}: {bom_name} encoded files are not supported")
        if bom_encoding != encoding:
            if warn is not None:
                warn(
                    f"Warning: {label} has a {bom_name} byte order mark; "
                    f"using {bom_encoding} instead of {encoding}"
                )
            encoding = bom_encoding

    codec = CODECS.get(encoding)
    if codec is None:
        raise UnsupportedOperationError(f"Encoding '{encoding}' is not supported")

    try:
        text = data[len(bom) :].decode(codec)
    except UnicodeDecodeError as error:
        raise MalformedInputError(f"Invalid {encoding} sequence in {label}: {error}") from error

    return SourceText(text=text, encoding=encoding, bom=bom)


def encode_source(source: SourceText, text: str) -> bytes:
    """Encode formatted text the same way `source` was decoded.

    Raises:
        UnsupportedOperationError: If the text cannot be represented in the
            source encoding.
    """
    try:
        return source.bom + text.encode(CODECS[source.encoding])
    except UnicodeEncodeError as error:
        raise UnsupportedOperationError(
            f"Formatted text cannot be encoded as {source.encoding}: {error}"
        ) from error


def _copy_owner(
    temp_name: str,
    original: os.stat_result,
    filepath: Path,
    warn: Callable[[str], None] | None,
):
    uid = getattr(original, "st_uid", None)
    gid = getattr(original, "st_gid", None)
    if uid is None or gid is None or not hasattr(os, "chown"):
        return
    try:
        os.chown(temp_name, uid, gid)
    except PermissionError:
        # Changing ownership needs elevated privileges
        if warn is not None:
            warn(f"Warning: could not keep the owner of {filepath.name}")


def write_source(
    filepath: Path,
    data: bytes,
    expected_stat: os.stat_result,
    warn: Callable[[str], None] | None = None,
):
    """Atomically replace a file with new content.

    The data goes to a temporary file next to `filepath`, which takes over
    the original's mode and, where permitted, its owner before it is moved
    into place. The original access time is kept.

    Args:
        filepath: File to replace.
        data: New file content.
        expected_stat: Stat taken before the file was read.
        warn: Optional callback for non-fatal diagnostics.

    Raises:
        IOError: If the file changed since `expected_stat` was taken or
            cannot be replaced.
    """
    ensure_file_unchanged(expected_stat, collect_file_stat(filepath), filepath)

    temp_name: str | None = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="wb", dir=filepath.parent, prefix=f".{filepath.name}.", delete=False
        ) as stream:
            temp_name = stream.name
            stream.write(data)
            stream.flush()
            os.fsync(stream.fileno())

        os.chmod(temp_name, stat.S_IMODE(expected_stat.st_mode))
        _copy_owner(temp_name, expected_stat, filepath, warn)
        os.replace(temp_name, filepath)
        temp_name = None

        os.utime(filepath, ns=(expected_stat.st_atime_ns, filepath.stat().st_mtime_ns))
    finally:
        if temp_name is not None:
            Path(temp_name).unlink(missing_ok=True)
