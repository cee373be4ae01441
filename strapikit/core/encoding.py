"""
DB 인코딩 검사 / 변환

MySQL 데이터베이스와 테이블의 charset/collation 을 검사하고
utf8mb4 / utf8mb4_unicode_ci 로 변환하는 핵심 로직.
- EncodingInspector: information_schema 조회로 SchemaSnapshot 생성
- build_plan / parse_table_selection: 변환 대상 계산
- ConversionExecutor: ALTER 실행 (테이블 단위 실패는 경고 후 계속)
- EncodingChecker: 대화형 검사/변환 흐름
"""
import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, List, Optional, Tuple

from strapikit.core.console import Console, format_bytes
from strapikit.core.constants import TARGET_CHARSET, TARGET_COLLATION
from strapikit.core.db_connector import quote_identifier
from strapikit.core.errors import DatabaseError, EncodingError
from strapikit.core.logger import get_logger

logger = get_logger('encoding')

DATABASE_ENCODING_SQL = """
SELECT DEFAULT_CHARACTER_SET_NAME AS charset_name,
       DEFAULT_COLLATION_NAME AS collation_name
FROM information_schema.SCHEMATA
WHERE SCHEMA_NAME = %s
"""

TABLE_ENCODING_SQL = """
SELECT T.TABLE_NAME AS table_name,
       CCSA.CHARACTER_SET_NAME AS charset_name,
       T.TABLE_COLLATION AS collation_name
FROM information_schema.TABLES T
LEFT JOIN information_schema.COLLATION_CHARACTER_SET_APPLICABILITY CCSA
  ON T.TABLE_COLLATION = CCSA.COLLATION_NAME
WHERE T.TABLE_SCHEMA = %s
  AND T.TABLE_TYPE = 'BASE TABLE'
ORDER BY T.TABLE_NAME
"""


@dataclass(frozen=True)
class EncodingPair:
    """(charset, collation) 쌍"""
    charset: Optional[str]
    collation: Optional[str]

    @property
    def is_target(self) -> bool:
        return self.charset == TARGET_CHARSET and self.collation == TARGET_COLLATION

    def __str__(self) -> str:
        return f"{self.charset} / {self.collation}"


@dataclass(frozen=True)
class TableEncoding:
    name: str
    encoding: EncodingPair

    @property
    def needs_conversion(self) -> bool:
        return not self.encoding.is_target


@dataclass(frozen=True)
class SchemaSnapshot:
    """특정 시점의 DB/테이블 인코딩 (이름순, 변경 불가)"""
    database: str
    database_encoding: EncodingPair
    tables: Tuple[TableEncoding, ...] = ()


@dataclass
class RemediationPlan:
    """변환 대상 목록

    tables_to_convert 는 SchemaSnapshot 의 나열 순서를 유지합니다.
    """
    database: str
    database_needs_conversion: bool
    tables_to_convert: List[str] = field(default_factory=list)
    compliant_tables: List[str] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.database_needs_conversion and not self.tables_to_convert


@dataclass
class ConversionResult:
    """테이블 변환 결과"""
    converted: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)   # table -> error

    @property
    def ok(self) -> bool:
        return not self.failed


class ConversionScope(Enum):
    """변환 범위 (메뉴 번호)"""
    ALL = "1"              # DB + 모든 대상 테이블
    DATABASE_ONLY = "2"    # DB 기본값만 (이후 생성되는 테이블에만 적용)
    SELECTED = "3"         # 선택한 테이블만
    ABORT = "4"            # 변경 없이 종료

    @classmethod
    def from_choice(cls, choice: str) -> 'ConversionScope':
        for scope in cls:
            if scope.value == choice.strip():
                return scope
        raise EncodingError(f"Invalid choice: {choice}")


def build_plan(snapshot: SchemaSnapshot) -> RemediationPlan:
    """SchemaSnapshot 을 목표 인코딩과 비교하여 변환 대상 분리"""
    plan = RemediationPlan(
        database=snapshot.database,
        database_needs_conversion=not snapshot.database_encoding.is_target,
    )
    for table in snapshot.tables:
        if table.needs_conversion:
            plan.tables_to_convert.append(table.name)
        else:
            plan.compliant_tables.append(table.name)
    return plan


def parse_table_selection(text: str, candidates: List[str]) -> Tuple[List[str], List[str]]:
    """테이블 선택 입력 파싱

    'all' 또는 1부터 시작하는 쉼표 구분 번호 목록 (예: '1,3,5').
    잘못된 번호는 전체를 중단하지 않고 따로 모아서 반환합니다.

    Args:
        text: 사용자 입력
        candidates: 번호가 매겨진 후보 테이블 목록

    Returns:
        (선택된 테이블 - 후보 목록 순서, 무효 토큰 목록)
    """
    if text.strip().lower() == "all":
        return list(candidates), []

    picked = set()
    invalid = []
    for token in text.split(","):
        token = "".join(token.split())
        if not token:
            continue
        if token.isascii() and token.isdigit() and 1 <= int(token) <= len(candidates):
            picked.add(int(token) - 1)
        else:
            invalid.append(token)

    selected = [candidates[i] for i in sorted(picked)]
    return selected, invalid


class EncodingInspector:
    """information_schema 기반 인코딩 조회"""

    def __init__(self, connector):
        self.connector = connector

    def inspect(self, database: str) -> SchemaSnapshot:
        """
        DB 기본 인코딩과 테이블별 인코딩 조회

        Raises:
            EncodingError: 스키마 정보를 가져오지 못한 경우
        """
        try:
            db_rows = self.connector.query(DATABASE_ENCODING_SQL, (database,))
            table_rows = self.connector.query(TABLE_ENCODING_SQL, (database,))
        except DatabaseError as e:
            raise EncodingError(f"Failed to retrieve database encoding: {e}") from e

        if not db_rows or not db_rows[0].get('charset_name'):
            raise EncodingError("Failed to retrieve database encoding")

        db_encoding = EncodingPair(db_rows[0]['charset_name'], db_rows[0].get('collation_name'))
        tables = tuple(
            TableEncoding(
                name=row['table_name'],
                encoding=EncodingPair(row.get('charset_name'), row.get('collation_name'))
            )
            for row in table_rows
        )
        logger.info(f"인코딩 조회: {database} ({db_encoding}), 테이블 {len(tables)}개")
        return SchemaSnapshot(database=database, database_encoding=db_encoding, tables=tables)


class ConversionExecutor:
    """ALTER DATABASE / ALTER TABLE 실행기"""

    def __init__(self, connector, progress_callback: Optional[Callable[[str], None]] = None,
                 warning_callback: Optional[Callable[[str], None]] = None):
        self.connector = connector
        self._progress = progress_callback
        self._warning = warning_callback

    def convert_database(self, database: str):
        """DB 기본 인코딩 변경 (실패 시 치명)"""
        if self._progress:
            self._progress(f"Converting database: {database}")
        sql = (
            f"ALTER DATABASE {quote_identifier(database)} "
            f"CHARACTER SET {TARGET_CHARSET} COLLATE {TARGET_COLLATION}"
        )
        try:
            self.connector.run(sql)
        except DatabaseError as e:
            raise EncodingError(f"Failed to convert database: {e}") from e

    def convert_tables(self, tables: List[str]) -> ConversionResult:
        """테이블 순차 변환

        한 테이블이 실패해도 나머지 테이블은 계속 변환합니다.
        """
        result = ConversionResult()
        for table in tables:
            if self._progress:
                self._progress(f"Converting table: {table}")
            sql = (
                f"ALTER TABLE {quote_identifier(table)} "
                f"CONVERT TO CHARACTER SET {TARGET_CHARSET} COLLATE {TARGET_COLLATION}"
            )
            try:
                self.connector.run(sql)
                result.converted.append(table)
            except DatabaseError as e:
                result.failed[table] = str(e)
                if self._warning:
                    self._warning(f"Failed to convert table: {table} (continuing...)")
        return result


class EncodingChecker:
    """대화형 인코딩 검사/변환 흐름"""

    def __init__(self, connector, profile, console: Console, backup_file: Optional[str] = None):
        """
        Args:
            connector: 연결된 MySQLConnector
            profile: ConnectionProfile
            console: 출력/입력
            backup_file: 지정 시 백업 자기 확인 대신 파일 존재를 강제 검증
        """
        self.connector = connector
        self.profile = profile
        self.console = console
        self.backup_file = backup_file
        self.inspector = EncodingInspector(connector)
        self.executor = ConversionExecutor(
            connector,
            progress_callback=console.info,
            warning_callback=console.warn
        )

    # ------------------------------------------------------------
    # 리포트
    # ------------------------------------------------------------
    def report(self, snapshot: SchemaSnapshot) -> RemediationPlan:
        """검사 결과 출력 후 변환 계획 반환"""
        plan = build_plan(snapshot)
        c = self.console

        c.header(f"Database: {snapshot.database}")
        c.line(f"  Character Set: {snapshot.database_encoding.charset}")
        c.line(f"  Collation:     {snapshot.database_encoding.collation}")
        c.line()
        if plan.database_needs_conversion:
            c.warn(f"Database encoding is not {TARGET_CHARSET}/{TARGET_COLLATION}")
        else:
            c.success(f"Database encoding is correct ({TARGET_CHARSET}/{TARGET_COLLATION})")
        c.line()

        if not snapshot.tables:
            c.warn("No tables found in database")
            return plan

        c.info(f"Found {len(snapshot.tables)} tables")
        c.line()
        c.line(f"{'Table Name':<40} {'Character Set':<20} {'Collation':<30}")
        c.line("-" * 80)
        for table in snapshot.tables:
            row = f"{table.name:<40} {str(table.encoding.charset):<20} {str(table.encoding.collation):<30}"
            c.colored(row, not table.needs_conversion)
        c.line()

        if plan.tables_to_convert:
            c.warn(f"{len(plan.tables_to_convert)} tables need conversion (shown in yellow)")
        else:
            c.success(f"All tables are using {TARGET_CHARSET}/{TARGET_COLLATION}")
        return plan

    # ------------------------------------------------------------
    # 백업 게이트
    # ------------------------------------------------------------
    def _print_backup_hint(self):
        p = self.profile
        self.console.line("To create a backup, run:")
        self.console.line("  strapikit export --output ./backups")
        self.console.line()
        self.console.line("Or manually:")
        self.console.line(
            f"  mysqldump -h {p.host} -P {p.port} -u {p.username} -p {p.database}"
            f" | gzip > db-backup-$(date +%s).sql.gz"
        )
        self.console.line()

    def _verify_backup_file(self):
        """--backup-file 지정 시 백업 파일 존재/크기 강제 검증"""
        path = self.backup_file
        if not os.path.isfile(path):
            raise EncodingError(f"Backup file not found: {path}")
        size = os.path.getsize(path)
        if size == 0:
            raise EncodingError(f"Backup file is empty: {path}")
        self.console.success(f"Backup verified: {path} ({format_bytes(size)})")

    def confirm_backup(self) -> bool:
        """변환 전 백업 확인

        backup_file 이 없으면 운영자의 자기 확인(yes/NO)에 의존합니다.
        """
        if self.backup_file:
            self._verify_backup_file()
            return True

        self._print_backup_hint()
        if self.console.confirm("Have you created a backup? (yes/NO): "):
            return True

        self.console.line()
        self.console.warn("WARNING: Proceeding without a backup is RISKY!")
        self.console.warn("If conversion fails, you may lose data permanently")
        self.console.line()
        if self.console.confirm("Proceed WITHOUT backup at your own risk? (yes/NO): "):
            logger.warning("백업 없이 변환 진행 (운영자 승인)")
            return True

        self.console.info("Conversion cancelled - please create a backup first")
        return False

    # ------------------------------------------------------------
    # 실행
    # ------------------------------------------------------------
    def _convert_tables(self, tables: List[str]) -> ConversionResult:
        result = self.executor.convert_tables(tables)
        if result.ok:
            self.console.success(f"{len(result.converted)} tables converted")
        else:
            self.console.warn(
                f"{len(result.converted)} tables converted, {len(result.failed)} failed: "
                f"{', '.join(result.failed)}"
            )
        return result

    def _run_all(self, plan: RemediationPlan) -> bool:
        c = self.console
        c.line()
        c.warn("IMPORTANT: This will convert the database AND all tables")
        c.warn("This operation modifies data and cannot be easily reversed")
        c.warn("Large tables may take several minutes to convert")
        c.line()
        c.warn("STRONGLY RECOMMENDED: Create a database backup first!")
        c.line()
        if not self.confirm_backup():
            return False
        c.line()
        if not c.confirm("Final confirmation - proceed with conversion? (yes/NO): "):
            c.info("Conversion cancelled")
            return False

        c.line()
        c.info("Starting conversion...")
        if plan.database_needs_conversion:
            self.executor.convert_database(plan.database)
            c.success("Database converted")
        if plan.tables_to_convert:
            self._convert_tables(plan.tables_to_convert)
        c.line()
        c.success("Conversion completed!")
        return True

    def _run_database_only(self, plan: RemediationPlan) -> bool:
        c = self.console
        if not plan.database_needs_conversion:
            c.info(f"Database is already {TARGET_CHARSET}/{TARGET_COLLATION}")
            return False
        c.line()
        c.warn("This will convert ONLY the database (not existing tables)")
        c.info(f"New tables created after this will inherit {TARGET_CHARSET}/{TARGET_COLLATION}")
        c.line()
        if not c.confirm("Continue? (yes/NO): "):
            c.info("Conversion cancelled")
            return False
        c.line()
        self.executor.convert_database(plan.database)
        c.success("Database converted!")
        return True

    def _run_selected(self, plan: RemediationPlan) -> bool:
        c = self.console
        if not plan.tables_to_convert:
            c.info("No tables need conversion")
            return False

        c.line()
        c.info("Tables that need conversion:")
        for index, table in enumerate(plan.tables_to_convert, start=1):
            c.line(f"  {index}. {table}")
        c.line()

        selection = c.prompt("Enter table numbers to convert (e.g., 1,3,5 or 'all'): ")
        selected, invalid = parse_table_selection(selection, plan.tables_to_convert)
        for token in invalid:
            c.warn(f"Skipping invalid index: {token}")
        if not selected:
            c.info("No tables selected")
            return False

        c.line()
        c.warn(f"IMPORTANT: This will convert {len(selected)} tables")
        c.warn("This operation modifies data and cannot be easily reversed")
        c.line()
        c.warn("RECOMMENDED: Create a database backup first!")
        c.line()
        if not self.confirm_backup():
            return False

        c.line()
        c.info(f"Converting {len(selected)} tables...")
        self._convert_tables(selected)
        c.success("Selected tables converted!")
        return True

    def verify(self):
        """변환 후 재검사 결과 출력"""
        c = self.console
        c.banner("Verification")
        c.info("Verifying database encoding...")
        snapshot = self.inspector.inspect(self.profile.database)
        plan = build_plan(snapshot)
        if plan.database_needs_conversion:
            c.warn(f"Database: {snapshot.database_encoding} (not fully converted)")
        else:
            c.success(f"Database: {snapshot.database_encoding}")

        c.info("Checking remaining tables...")
        remaining = len(plan.tables_to_convert)
        if remaining == 0:
            c.success(f"All tables are now {TARGET_CHARSET}/{TARGET_COLLATION}")
        else:
            c.warn(f"{remaining} tables still need conversion")
            c.info("Run this command again to convert remaining tables")

    def run(self) -> int:
        """검사 → 메뉴 → 변환 → 검증

        Returns:
            종료 코드 (사용자 취소도 0)
        """
        c = self.console
        c.banner("Database Encoding Check")
        c.info("Checking database-level settings...")
        snapshot = self.inspector.inspect(self.profile.database)
        plan = self.report(snapshot)
        c.line()

        if plan.is_noop:
            c.success("All database and table encodings are correct!")
            return 0

        c.banner("Conversion Options")
        if plan.database_needs_conversion:
            c.warn(f"Database needs conversion to {TARGET_CHARSET}/{TARGET_COLLATION}")
        if plan.tables_to_convert:
            c.warn(f"{len(plan.tables_to_convert)} tables need conversion")
        c.line()
        c.line("Options:")
        c.line(f"  [1] Convert database and all tables to {TARGET_CHARSET}/{TARGET_COLLATION}")
        c.line(f"  [2] Convert database only (new tables will inherit {TARGET_CHARSET})")
        c.line("  [3] Convert specific tables only")
        c.line("  [4] Exit without changes")
        c.line()

        scope = ConversionScope.from_choice(c.prompt("Enter your choice (1-4): "))
        logger.info(f"변환 범위 선택: {scope.name}")

        if scope is ConversionScope.ABORT:
            c.info("Exiting without changes")
            return 0

        handlers = {
            ConversionScope.ALL: self._run_all,
            ConversionScope.DATABASE_ONLY: self._run_database_only,
            ConversionScope.SELECTED: self._run_selected,
        }
        if not handlers[scope](plan):
            return 0

        c.line()
        self.verify()
        c.line()
        c.success("Operation completed!")
        return 0

    def negotiate(self, assume_yes: bool = False) -> bool:
        """Import 직전 인코딩 협상

        테이블 DROP 이후 DB 기본 인코딩을 맞춰 두면 Import 로
        새로 생성되는 테이블이 utf8mb4 를 상속합니다.

        Args:
            assume_yes: True 면 묻지 않고 전체 변환

        Returns:
            변경 발생 여부
        """
        c = self.console
        snapshot = self.inspector.inspect(self.profile.database)
        plan = self.report(snapshot)
        c.line()

        if plan.is_noop:
            c.success("Encoding already correct, nothing to negotiate")
            return False

        if assume_yes:
            choice = "1"
        else:
            c.line("Options:")
            c.line(f"  [1] Convert database (and any remaining tables) to {TARGET_CHARSET}/{TARGET_COLLATION}")
            c.line("  [2] Convert database default only")
            c.line("  [3] Continue import without encoding changes")
            c.line()
            choice = c.prompt("Enter your choice (1-3): ")

        if choice == "3":
            c.info("Keeping current encoding")
            return False
        if choice not in ("1", "2"):
            raise EncodingError(f"Invalid choice: {choice}")

        if plan.database_needs_conversion:
            self.executor.convert_database(plan.database)
            c.success("Database converted")
        elif choice == "2":
            c.info("Database default already correct, nothing to change")
            return False
        if choice == "1" and plan.tables_to_convert:
            self._convert_tables(plan.tables_to_convert)
        return True
