"""
백업 아카이브 검증 / 압축 해제

확장자와 파일 시그니처(magic bytes)가 일치하는지 확인하여
다운로드 URL 이 백업 대신 HTML 에러 페이지를 돌려준 경우를 걸러냅니다.
"""
import gzip
import os
import shutil
import zlib
from enum import Enum
from pathlib import Path

from strapikit.core.constants import MIN_ARCHIVE_SIZE
from strapikit.core.console import format_bytes
from strapikit.core.errors import ArchiveError

GZIP_MAGIC = b'\x1f\x8b'
TAR_MAGIC = b'ustar'
TAR_MAGIC_OFFSET = 257


class ArchiveKind(Enum):
    GZIP = "gzip"
    TAR = "tar"
    UNKNOWN = "unknown"


def expected_kind(filename: str) -> ArchiveKind:
    """확장자로 기대 형식 판단"""
    name = filename.lower()
    if name.endswith(('.tar.gz', '.tgz', '.gz')):
        return ArchiveKind.GZIP
    if name.endswith('.tar'):
        return ArchiveKind.TAR
    return ArchiveKind.UNKNOWN


def detect_kind(path) -> ArchiveKind:
    """파일 시그니처로 실제 형식 판단"""
    with open(path, 'rb') as f:
        header = f.read(TAR_MAGIC_OFFSET + len(TAR_MAGIC))
    if header.startswith(GZIP_MAGIC):
        return ArchiveKind.GZIP
    if header[TAR_MAGIC_OFFSET:TAR_MAGIC_OFFSET + len(TAR_MAGIC)] == TAR_MAGIC:
        return ArchiveKind.TAR
    return ArchiveKind.UNKNOWN


def validate_archive(path, filename: str = None, min_size: int = MIN_ARCHIVE_SIZE) -> ArchiveKind:
    """
    아카이브 크기와 시그니처 검증

    Args:
        path: 검증할 파일 경로
        filename: 확장자 판단에 사용할 이름 (기본: path 의 파일명)
        min_size: 최소 크기 (바이트)

    Returns:
        감지된 ArchiveKind (확장자를 알 수 없으면 호출 측에서 경고)

    Raises:
        ArchiveError: 너무 작거나 확장자와 시그니처가 다른 경우
    """
    path = Path(path)
    filename = filename or path.name

    if not path.is_file():
        raise ArchiveError(f"File not found: {path}")

    size = path.stat().st_size
    if size < min_size:
        raise ArchiveError(
            f"File is too small ({format_bytes(size)}). This is likely an error page, "
            f"not a backup file. Please verify the URL is correct and the file is accessible."
        )

    expected = expected_kind(filename)
    detected = detect_kind(path)

    if expected is not ArchiveKind.UNKNOWN and detected is not expected:
        raise ArchiveError(
            f"File is not in {expected.value} format (detected: {detected.value}). "
            f"The URL may be returning an error page instead of the backup file."
        )
    return detected


def decompress_gzip(path) -> Path:
    """
    .gz 파일을 같은 디렉토리에 압축 해제 (확장자 .gz 제거)

    Returns:
        압축 해제된 파일 경로
    """
    path = Path(path)
    if not path.name.lower().endswith('.gz'):
        raise ArchiveError(f"Not a .gz file: {path.name}")

    target = path.with_name(path.name[:-3])
    try:
        with gzip.open(path, 'rb') as src, open(target, 'wb') as dst:
            shutil.copyfileobj(src, dst)
    except (OSError, EOFError, zlib.error) as e:
        _remove_partial(target)
        raise ArchiveError(f"Failed to extract .gz file: {e}") from e
    except BaseException:
        # Ctrl+C 등: 반쯤 쓰인 파일을 남기지 않음
        _remove_partial(target)
        raise
    return target


def _remove_partial(target: Path):
    if target.exists():
        os.remove(target)
