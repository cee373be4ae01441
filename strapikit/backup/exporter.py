"""
Strapi 백업 Export

npm run strapi export 로 아카이브를 만든 뒤 지정한 출력 디렉토리로 옮깁니다.
"""
import os
import shutil
import time
from pathlib import Path
from typing import Optional

from strapikit.backup.strapi_cli import StrapiCLI
from strapikit.core.console import Console, format_bytes, format_duration
from strapikit.core.errors import ExportError, ToolkitError
from strapikit.core.logger import get_logger

logger = get_logger('exporter')

# Strapi 가 만들 수 있는 확장자 (우선순위 순)
EXPORT_SUFFIXES = (".tar.gz", ".tar")


class BackupExporter:
    """Strapi 백업 Export"""

    def __init__(self, console: Console, strapi: StrapiCLI):
        self.console = console
        self.strapi = strapi

    def _find_archive(self, basename: str) -> Optional[Path]:
        workdir = Path(self.strapi.workdir)
        for suffix in EXPORT_SUFFIXES:
            candidate = workdir / f"{basename}{suffix}"
            if candidate.is_file():
                return candidate
        return None

    def _prepare_output_dir(self, output_dir: str) -> Path:
        path = Path(output_dir).expanduser()
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(f"Cannot create output directory: {output_dir} ({e})") from e
        if not os.access(path, os.W_OK):
            raise ExportError(f"Output directory is not writable: {output_dir}")
        return path.resolve()

    def run(self, output_dir: str = ".") -> int:
        """
        Export 실행

        Returns:
            종료 코드 (0: 성공, 1: 실패, 130: 중단)
        """
        c = self.console
        started_at = time.time()
        c.banner("Strapi Backup Export", started=True)

        try:
            c.info("Running pre-flight checks...")
            for message in self.strapi.check_project(ExportError):
                c.success(message)
            destination_dir = self._prepare_output_dir(output_dir)
            c.success(f"Output directory ready: {destination_dir}")
            c.line()

            basename = f"backup-{int(time.time())}"
            c.info(f"Creating backup: {basename}")
            c.line()
            returncode = self.strapi.export_archive(basename)
            c.line()
            if returncode != 0:
                raise ExportError(f"Backup export failed (exit code {returncode})")

            archive = self._find_archive(basename)
            if archive is None:
                raise ExportError(f"Backup file not found after export: {basename}.tar.gz")

            destination = destination_dir / archive.name
            if archive.resolve() != destination:
                try:
                    shutil.move(str(archive), str(destination))
                except OSError as e:
                    raise ExportError(f"Failed to move backup to {destination_dir}: {e}") from e

            c.success("Export completed successfully!")
            c.line()
            c.banner("Export Summary")
            c.line(f"Location: {destination}")
            c.line(f"Size: {format_bytes(destination.stat().st_size)}")
            c.line(f"Duration: {format_duration(time.time() - started_at)}")
            c.line("=" * 40)
            logger.info(f"Export 완료: {destination}")
            return 0

        except ToolkitError as e:
            c.error(str(e))
            return 1

        except KeyboardInterrupt:
            c.line()
            c.warn("Export interrupted")
            return 130
