"""
strapikit 명령줄 인터페이스

사용법:
    strapikit encoding [--backup-file PATH]
    strapikit import [--file PATH | --url URL] [--snapshot-dir DIR] [--yes]
    strapikit export [--output DIR]

종료 코드:
    0   성공 또는 사용자 취소
    1   실패 (잘못된 인자 포함)
    130 Ctrl+C 중단
"""
import argparse
import os
import sys
from typing import List, Optional

from strapikit.backup.exporter import BackupExporter
from strapikit.backup.importer import BackupImporter, ImportOptions
from strapikit.backup.strapi_cli import StrapiCLI
from strapikit.core.console import Console
from strapikit.core.db_connector import MySQLConnector
from strapikit.core.encoding import EncodingChecker
from strapikit.core.env_config import load_connection_profile
from strapikit.core.errors import DatabaseError, ToolkitError
from strapikit.core.logger import enable_console_logging, get_log_file_path, get_logger
from strapikit.version import __app_name__, __version__

logger = get_logger('cli')


class ToolkitArgumentParser(argparse.ArgumentParser):
    """잘못된 사용법은 종료 코드 1 (argparse 기본값 2 대신)"""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def resolve_env_file(args) -> str:
    """--env-file 미지정 시 프로젝트 디렉토리의 .env"""
    if args.env_file:
        return args.env_file
    return os.path.join(args.project_dir, ".env")


def cmd_encoding(args, console: Console) -> int:
    """DB/테이블 인코딩 검사 및 변환"""
    profile = load_connection_profile(resolve_env_file(args))
    console.info(f"Database: {profile.describe()}")

    if not profile.is_mysql_family:
        console.info(
            f"Encoding check only applies to MySQL/MariaDB (DATABASE_CLIENT={profile.client})"
        )
        return 0

    console.info("Testing database connection...")
    connector = MySQLConnector.from_profile(profile)
    success, msg = connector.connect()
    if not success:
        logger.error(f"연결 실패: {msg}")
        raise DatabaseError("Cannot connect to database. Please check your credentials.")
    console.success("Database connection successful")
    console.line()

    try:
        checker = EncodingChecker(connector, profile, console, backup_file=args.backup_file)
        return checker.run()
    finally:
        connector.disconnect()


def cmd_import(args, console: Console) -> int:
    """Strapi 백업 Import"""
    profile = load_connection_profile(resolve_env_file(args))
    importer = BackupImporter(profile, console, StrapiCLI(args.project_dir))
    options = ImportOptions(
        local_file=args.file,
        url=args.url,
        snapshot_dir=args.snapshot_dir,
        assume_yes=args.yes,
    )
    return importer.run(options)


def cmd_export(args, console: Console) -> int:
    """Strapi 백업 Export"""
    strapi = StrapiCLI(args.project_dir)
    exporter = BackupExporter(console, strapi)
    return exporter.run(args.output or strapi.workdir)


def build_parser() -> ToolkitArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        '--env-file',
        help='DB 접속 정보를 읽을 .env 경로 (기본: <프로젝트>/.env)'
    )
    common.add_argument(
        '--project-dir',
        default='.',
        help='Strapi 프로젝트 디렉토리 (기본: 현재 디렉토리)'
    )
    common.add_argument(
        '--verbose',
        action='store_true',
        help='상세 로그를 stderr 로 출력'
    )

    parser = ToolkitArgumentParser(
        prog=__app_name__,
        description='Strapi 운영 도구: DB 인코딩 점검, 백업 Import/Export',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
예제:
  {__app_name__} encoding
  {__app_name__} encoding --backup-file ./backups/db.sql.gz
  {__app_name__} import --url https://example.com/backup.tar.gz
  {__app_name__} import --file ./backup-1700000000.tar.gz --yes
  {__app_name__} export --output ./backups

로그 파일: {get_log_file_path()}
        """
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    subparsers = parser.add_subparsers(dest='command', metavar='COMMAND')
    subparsers.required = True

    encoding = subparsers.add_parser(
        'encoding', parents=[common],
        help='DB/테이블 charset 검사 및 utf8mb4 변환'
    )
    encoding.add_argument(
        '--backup-file',
        metavar='PATH',
        help='변환 전 존재/크기를 검증할 백업 파일 (지정 시 yes/NO 확인 대신 강제 검증)'
    )
    encoding.set_defaults(handler=cmd_encoding)

    import_parser = subparsers.add_parser(
        'import', parents=[common],
        help='백업 아카이브 Import (스냅샷 후 기존 테이블 DROP)'
    )
    source = import_parser.add_mutually_exclusive_group()
    source.add_argument('--file', metavar='PATH', help='로컬 백업 파일')
    source.add_argument('--url', metavar='URL', help='백업 파일 URL (미지정 시 입력 요청)')
    import_parser.add_argument(
        '--snapshot-dir',
        metavar='DIR',
        help='DB 스냅샷 저장 디렉토리 (기본: <프로젝트>/backups)'
    )
    import_parser.add_argument(
        '--yes', '-y',
        action='store_true',
        help='확인 질문 생략 (인코딩 협상은 전체 변환 선택)'
    )
    import_parser.set_defaults(handler=cmd_import)

    export = subparsers.add_parser(
        'export', parents=[common],
        help='Strapi 백업 Export'
    )
    export.add_argument(
        '--output',
        metavar='DIR',
        help='백업 파일을 옮길 디렉토리 (기본: 프로젝트 디렉토리)'
    )
    export.set_defaults(handler=cmd_export)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        enable_console_logging()
    logger.info(f"{__app_name__} {__version__} 시작: {args.command}")

    console = Console()
    try:
        return args.handler(args, console)
    except ToolkitError as e:
        console.error(str(e))
        return 1
    except KeyboardInterrupt:
        console.line()
        console.warn("Interrupted")
        return 130


if __name__ == '__main__':
    sys.exit(main())
