"""
Strapi 백업 Import 오케스트레이터

단계 순서 (첫 실패에서 중단):
    ACQUIRE   → 로컬 파일 또는 URL 다운로드, 크기/시그니처 검증
    EXTRACT   → .gz 압축 해제, 프로젝트 디렉토리에 배치, 사용자 확인
    SNAPSHOT  → mysqldump 스냅샷 (MySQL 계열)
    DESTROY   → FK 체크 해제 후 단일 DROP TABLE, 0개 남았는지 재확인
    NEGOTIATE → 인코딩 재검사 및 변환 선택
    DELEGATE  → npm run strapi import -- -f <file> --force
    VERIFY    → 테이블 수 확인 (0개면 경고만)

스냅샷은 어떤 경우에도 삭제하지 않으며, 실패 시 복구 경로로 안내합니다.
임시 다운로드/복사 파일은 중단(Ctrl+C) 시에도 정리합니다.
"""
import shutil
import tempfile
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, List, Optional

from strapikit.backup.archive import (
    ArchiveKind, decompress_gzip, expected_kind, validate_archive
)
from strapikit.backup.downloader import ArchiveDownloader, filename_from_url
from strapikit.backup.snapshot import DatabaseSnapshotter
from strapikit.backup.strapi_cli import StrapiCLI
from strapikit.core.console import Console, format_bytes, format_duration
from strapikit.core.constants import SYSTEM_SCHEMAS
from strapikit.core.db_connector import MySQLConnector, quote_identifier
from strapikit.core.encoding import EncodingChecker
from strapikit.core.errors import (
    BackupImportError, DatabaseError, SnapshotError, ToolkitError
)
from strapikit.core.logger import get_logger

logger = get_logger('importer')


class ImportPhase(Enum):
    """Import 단계"""
    ACQUIRE = "acquire"
    EXTRACT = "extract"
    SNAPSHOT = "snapshot"
    DESTROY = "destroy"
    NEGOTIATE = "negotiate"
    DELEGATE = "delegate"
    VERIFY = "verify"
    COMPLETED = "completed"


PHASE_SEQUENCE = (
    ImportPhase.ACQUIRE,
    ImportPhase.EXTRACT,
    ImportPhase.SNAPSHOT,
    ImportPhase.DESTROY,
    ImportPhase.NEGOTIATE,
    ImportPhase.DELEGATE,
    ImportPhase.VERIFY,
)


@dataclass
class ImportOptions:
    """Import 실행 옵션"""
    local_file: Optional[str] = None
    url: Optional[str] = None
    snapshot_dir: Optional[str] = None    # 기본: <프로젝트>/backups
    assume_yes: bool = False              # 확인 질문 생략


@dataclass
class ImportContext:
    """단계 간 공유 상태"""
    options: ImportOptions
    started_at: float = field(default_factory=time.time)
    phase: Optional[ImportPhase] = None
    completed: List[ImportPhase] = field(default_factory=list)
    source: str = ""
    archive_path: Optional[Path] = None
    import_file: Optional[Path] = None
    snapshot_path: Optional[Path] = None
    table_count: Optional[int] = None
    temp_paths: List[Path] = field(default_factory=list)   # 종료 시 삭제
    temp_dirs: List[Path] = field(default_factory=list)


class BackupImporter:
    """Strapi 백업 Import"""

    def __init__(
        self,
        profile,
        console: Console,
        strapi: StrapiCLI,
        downloader: Optional[ArchiveDownloader] = None,
        connector_factory: Optional[Callable] = None,
        snapshotter_factory: Optional[Callable] = None
    ):
        """
        Args:
            profile: ConnectionProfile
            console: 출력/입력
            strapi: Strapi CLI 래퍼 (workdir 가 Import 대상 프로젝트)
            downloader: URL 다운로드기
            connector_factory: profile -> MySQLConnector
            snapshotter_factory: (profile, output_dir) -> DatabaseSnapshotter
        """
        self.profile = profile
        self.console = console
        self.strapi = strapi
        self.downloader = downloader or ArchiveDownloader()
        self.connector_factory = connector_factory or MySQLConnector.from_profile
        self.snapshotter_factory = snapshotter_factory or DatabaseSnapshotter
        self._connector = None

    @property
    def workdir(self) -> Path:
        return Path(self.strapi.workdir)

    def _get_connector(self):
        """MySQL 연결 (lazy)"""
        if self._connector is None:
            connector = self.connector_factory(self.profile)
            success, msg = connector.connect()
            if not success:
                raise BackupImportError(f"Cannot connect to database: {msg}")
            self._connector = connector
        return self._connector

    # ------------------------------------------------------------
    # 드라이버
    # ------------------------------------------------------------
    def run(self, options: ImportOptions) -> int:
        """
        전체 단계 실행

        Returns:
            종료 코드 (0: 성공/사용자 취소, 1: 실패, 130: 중단)
        """
        c = self.console
        ctx = ImportContext(options=options)
        c.banner("Strapi Backup Import", started=True)

        try:
            self._preflight()
            for phase in PHASE_SEQUENCE:
                ctx.phase = phase
                logger.info(f"단계 시작: {phase.value}")
                handler = getattr(self, f"_{phase.value}")
                if handler(ctx) is False:
                    logger.info(f"사용자 취소: {phase.value}")
                    return 0
                ctx.completed.append(phase)
            ctx.phase = ImportPhase.COMPLETED
            self._print_summary(ctx)
            return 0

        except ToolkitError as e:
            logger.error(f"Import 실패 ({ctx.phase.value if ctx.phase else 'preflight'}): {e}")
            c.error(str(e))
            self._print_recovery_hint(ctx)
            return 1

        except KeyboardInterrupt:
            c.line()
            c.warn(f"Interrupted during {ctx.phase.value if ctx.phase else 'preflight'} phase")
            self._print_recovery_hint(ctx)
            return 130

        finally:
            self._cleanup(ctx)
            if self._connector is not None:
                self._connector.disconnect()
                self._connector = None

    def _preflight(self):
        c = self.console
        c.info("Running pre-flight checks...")
        for message in self.strapi.check_project(BackupImportError):
            c.success(message)
        c.line()

    # ------------------------------------------------------------
    # 단계
    # ------------------------------------------------------------
    def _acquire(self, ctx: ImportContext) -> bool:
        c = self.console
        options = ctx.options

        if options.local_file:
            c.info(f"Using local file: {options.local_file}")
            path = Path(options.local_file).expanduser().resolve()
            if not path.is_file():
                raise BackupImportError(f"Local file not found: {options.local_file}")
            c.success("Local file found")
            c.info(f"File size: {format_bytes(path.stat().st_size)}")
            ctx.source = "Local file"
        else:
            url = options.url or c.prompt("Enter the backup file URL: ")
            if not url:
                raise BackupImportError("No URL provided")
            c.info(f"Backup URL: {url}")
            c.info(f"Detected filename: {filename_from_url(url)}")

            temp_dir = Path(tempfile.mkdtemp(prefix="strapikit-import-"))
            ctx.temp_dirs.append(temp_dir)
            c.line()
            c.info("Downloading backup file...")
            path = Path(self.downloader.download(url, str(temp_dir)))
            c.success(f"Download completed (HTTP {self.downloader.last_status})")
            c.info(f"Downloaded file size: {format_bytes(path.stat().st_size)}")
            ctx.source = url

        c.info("Validating file format...")
        detected = validate_archive(path)
        if expected_kind(path.name) is ArchiveKind.UNKNOWN:
            c.warn(f"Unknown file extension. Detected format: {detected.value}")
        else:
            c.success(f"Validated as {detected.value} file")

        ctx.archive_path = path
        return True

    def _extract(self, ctx: ImportContext) -> bool:
        c = self.console
        path = ctx.archive_path

        if path.name.lower().endswith(".gz"):
            c.line()
            c.info("Detected .gz file, extracting...")
            sibling = path.with_name(path.name[:-3])
            if sibling.exists():
                raise BackupImportError(
                    f"{sibling.name} already exists next to {path.name}; remove it and retry"
                )
            # 쓰기 전에 등록: 중단되어도 cleanup 대상
            ctx.temp_paths.append(sibling)
            extracted = decompress_gzip(path)
            c.success("Extraction completed")
            c.info(f"Extracted file size: {format_bytes(extracted.stat().st_size)}")
            if not ctx.options.local_file:
                c.info("Removing compressed file...")
                path.unlink()
            path = extracted

        # Strapi import 는 프로젝트 디렉토리 기준으로 파일을 찾음
        target = self.workdir / path.name
        if path.resolve() != target.resolve():
            if target.exists():
                raise BackupImportError(
                    f"{target} already exists; move it away or pass it with --file"
                )
            c.info("Copying backup file to current directory...")
            ctx.temp_paths.append(target)
            try:
                shutil.copy2(path, target)
            except OSError as e:
                raise BackupImportError(f"Failed to copy backup file to current directory: {e}") from e
            c.success(f"File copied to: {target}")
        ctx.import_file = target

        c.line()
        c.warn("About to import backup with --force flag (this will overwrite existing data)")
        if self.profile.is_mysql_family:
            c.warn(f"All tables in '{self.profile.database}' will be dropped after a snapshot is taken")
        c.info(f"Import file: {target}")
        c.line()

        if ctx.options.assume_yes:
            return True
        if not c.confirm("Continue with import? (yes/NO): "):
            c.info("Import cancelled by user")
            return False
        return True

    def _snapshot(self, ctx: ImportContext) -> bool:
        c = self.console
        if not self.profile.is_mysql_family:
            c.warn(f"Database snapshot skipped: not supported for '{self.profile.client}'")
            return True
        if self.profile.database in SYSTEM_SCHEMAS:
            raise BackupImportError(f"Refusing to operate on system schema '{self.profile.database}'")

        c.line()
        c.info("Creating database snapshot before destructive changes...")
        snapshot_dir = ctx.options.snapshot_dir or str(self.workdir / "backups")
        snapshotter = self.snapshotter_factory(self.profile, snapshot_dir)
        try:
            ctx.snapshot_path = Path(snapshotter.create())
        except SnapshotError as e:
            raise BackupImportError(f"{e}. No tables were dropped.") from e

        c.success(
            f"Snapshot created: {ctx.snapshot_path} "
            f"({format_bytes(ctx.snapshot_path.stat().st_size)})"
        )
        return True

    def _require_snapshot(self, ctx: ImportContext):
        """DROP 직전 스냅샷 존재/크기 재확인"""
        path = ctx.snapshot_path
        if path is None or not path.is_file() or path.stat().st_size == 0:
            raise BackupImportError("No verified database snapshot exists; refusing to drop tables")

    def _destroy(self, ctx: ImportContext) -> bool:
        c = self.console
        if not self.profile.is_mysql_family:
            c.info("Table drop skipped; Strapi import will overwrite existing data")
            return True

        self._require_snapshot(ctx)
        connector = self._get_connector()
        database = self.profile.database

        tables = connector.get_tables(database)
        if not tables:
            c.info("Database has no tables to drop")
        else:
            c.info(f"Dropping {len(tables)} tables...")
            drop_sql = "DROP TABLE IF EXISTS " + ", ".join(quote_identifier(t) for t in tables)
            try:
                connector.run("SET FOREIGN_KEY_CHECKS = 0")
                connector.run(drop_sql)
            except DatabaseError as e:
                raise BackupImportError(f"Failed to drop tables: {e}") from e
            finally:
                self._restore_fk_checks(connector)

        remaining = connector.count_tables(database)
        if remaining:
            raise BackupImportError(
                f"{remaining} tables still exist after drop (inconsistent drop). Import aborted."
            )
        c.success("All tables dropped")
        return True

    @staticmethod
    def _restore_fk_checks(connector):
        try:
            connector.run("SET FOREIGN_KEY_CHECKS = 1")
        except DatabaseError as e:
            logger.warning(f"FOREIGN_KEY_CHECKS 복원 실패: {e}")

    def _negotiate(self, ctx: ImportContext) -> bool:
        if not self.profile.is_mysql_family:
            return True
        c = self.console
        c.line()
        c.banner("Encoding Check")
        checker = EncodingChecker(self._get_connector(), self.profile, c)
        checker.negotiate(assume_yes=ctx.options.assume_yes)
        return True

    def _delegate(self, ctx: ImportContext) -> bool:
        c = self.console
        c.line()
        c.info("Starting backup import...")
        c.line()
        returncode = self.strapi.import_archive(ctx.import_file.name)
        if returncode != 0:
            raise BackupImportError(f"Backup import failed (exit code {returncode})")
        c.line()
        c.success("Import completed successfully!")
        return True

    def _verify(self, ctx: ImportContext) -> bool:
        """Import 후 테이블 수 확인 (실패하지 않음)"""
        c = self.console
        if not self.profile.is_mysql_family:
            return True
        try:
            ctx.table_count = self._get_connector().count_tables(self.profile.database)
        except ToolkitError as e:
            c.warn(f"Could not verify imported tables: {e}")
            return True

        if ctx.table_count == 0:
            c.warn("No tables found after import. Check the Strapi import output above.")
        else:
            c.success(f"{ctx.table_count} tables present after import")
        return True

    # ------------------------------------------------------------
    # 마무리
    # ------------------------------------------------------------
    def _print_recovery_hint(self, ctx: ImportContext):
        if not ctx.snapshot_path:
            return
        p = self.profile
        c = self.console
        c.warn(f"Database snapshot preserved at: {ctx.snapshot_path}")
        c.info(
            f"To restore: gunzip -c {ctx.snapshot_path} | "
            f"mysql -h {p.host} -P {p.port} -u {p.username} -p {p.database}"
        )

    def _cleanup(self, ctx: ImportContext):
        """임시 다운로드/복사본 삭제 (스냅샷은 대상 아님)"""
        removed = False
        for path in reversed(ctx.temp_paths):
            if path.exists():
                try:
                    path.unlink()
                    removed = True
                except OSError as e:
                    logger.warning(f"임시 파일 삭제 실패: {path} ({e})")
        for directory in ctx.temp_dirs:
            if directory.exists():
                shutil.rmtree(directory, ignore_errors=True)
                removed = True
        if removed:
            self.console.info("Cleaned up temporary files")

    def _print_summary(self, ctx: ImportContext):
        c = self.console
        c.line()
        c.banner("Import Summary")
        c.line(f"Source: {ctx.source}")
        c.line(f"File: {ctx.import_file}")
        if ctx.snapshot_path:
            c.line(f"Snapshot: {ctx.snapshot_path}")
        if ctx.table_count is not None:
            c.line(f"Tables: {ctx.table_count}")
        c.line(f"Duration: {format_duration(time.time() - ctx.started_at)}")
        c.line("=" * 40)
        c.line()
