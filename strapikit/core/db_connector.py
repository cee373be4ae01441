"""
MySQL 데이터베이스 연결 클래스
- 인코딩 검사/변환, 테이블 DROP 검증용 최소 쿼리 API
- 실패는 DatabaseError 로 전파 (호출 측에서 치명/경고 여부 결정)
"""
import pymysql
from typing import List, Dict, Any, Optional, Tuple

from strapikit.core.errors import DatabaseError
from strapikit.core.logger import get_logger

logger = get_logger('db_connector')


def quote_identifier(name: str) -> str:
    """백틱으로 식별자 quoting (내부 백틱은 이중화)"""
    return "`" + name.replace("`", "``") + "`"


def _format_error(e: Exception) -> str:
    """pymysql 예외를 '(코드): 메시지' 형식으로 변환"""
    if isinstance(e, pymysql.Error) and len(e.args) > 1:
        return f"MySQL 오류 ({e.args[0]}): {e.args[1]}"
    return str(e)


class MySQLConnector:
    """MySQL 데이터베이스 연결 및 쿼리 실행 클래스"""

    def __init__(self, host: str, port: int, user: str, password: str,
                 database: str = None):
        """
        Args:
            host: MySQL 호스트
            port: MySQL 포트
            user: MySQL 사용자
            password: MySQL 비밀번호
            database: 기본 데이터베이스
        """
        self.host = host
        self.port = port
        self.user = user
        self.password = password
        self.database = database
        self.connection: Optional[pymysql.Connection] = None

    @classmethod
    def from_profile(cls, profile) -> 'MySQLConnector':
        """ConnectionProfile 에서 커넥터 생성"""
        return cls(
            profile.host,
            profile.port,
            profile.username,
            profile.password,
            profile.database or None,
        )

    def connect(self) -> Tuple[bool, str]:
        """데이터베이스 연결"""
        try:
            self.connection = pymysql.connect(
                host=self.host,
                port=self.port,
                user=self.user,
                password=self.password,
                database=self.database,
                charset='utf8mb4',
                cursorclass=pymysql.cursors.DictCursor,
                connect_timeout=10,
                autocommit=True
            )
            logger.info(f"DB 연결 성공: {self.user}@{self.host}:{self.port}")
            return True, "연결 성공"
        except pymysql.Error as e:
            logger.error(f"DB 연결 실패: {_format_error(e)}")
            return False, _format_error(e)
        except OSError as e:
            logger.error(f"DB 연결 실패: {e}")
            return False, f"연결 오류: {str(e)}"

    def disconnect(self):
        """연결 종료"""
        if self.connection:
            try:
                self.connection.close()
            except pymysql.Error:
                pass
            finally:
                self.connection = None

    def is_connected(self) -> bool:
        """연결 상태 확인"""
        if self.connection:
            try:
                self.connection.ping(reconnect=False)
                return True
            except pymysql.Error:
                return False
        return False

    def _require_connection(self):
        if not self.connection:
            raise DatabaseError("Not connected to database")

    def query(self, sql: str, params: tuple = None) -> List[Dict[str, Any]]:
        """SELECT 실행 및 결과 반환

        Raises:
            DatabaseError: 연결이 없거나 쿼리 실패
        """
        self._require_connection()
        try:
            with self.connection.cursor() as cursor:
                cursor.execute(sql, params)
                return list(cursor.fetchall())
        except pymysql.Error as e:
            logger.error(f"쿼리 실행 오류: {_format_error(e)}")
            raise DatabaseError(_format_error(e)) from e

    def run(self, sql: str, params: tuple = None) -> int:
        """DDL/DML 실행

        Returns:
            영향받은 행 수

        Raises:
            DatabaseError: 연결이 없거나 실행 실패
        """
        self._require_connection()
        logger.debug(f"SQL 실행: {sql}")
        try:
            with self.connection.cursor() as cursor:
                affected = cursor.execute(sql, params)
            return affected or 0
        except pymysql.Error as e:
            logger.warning(f"SQL 실행 오류: {_format_error(e)} / {sql}")
            raise DatabaseError(_format_error(e)) from e

    def get_tables(self, schema: str = None) -> List[str]:
        """테이블 목록 조회 (BASE TABLE, 이름순)

        Args:
            schema: 스키마명 (None이면 현재 데이터베이스)
        """
        target_schema = schema or self.database
        rows = self.query(
            "SELECT TABLE_NAME AS table_name FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = 'BASE TABLE' "
            "ORDER BY TABLE_NAME",
            (target_schema,)
        )
        return [row['table_name'] for row in rows]

    def count_tables(self, schema: str = None) -> int:
        """테이블 수 조회"""
        target_schema = schema or self.database
        rows = self.query(
            "SELECT COUNT(*) AS cnt FROM information_schema.TABLES "
            "WHERE TABLE_SCHEMA = %s AND TABLE_TYPE = 'BASE TABLE'",
            (target_schema,)
        )
        if rows:
            return int(rows[0].get('cnt', 0))
        return 0

    def __enter__(self):
        """컨텍스트 매니저 진입 (연결 실패 시 DatabaseError)"""
        success, msg = self.connect()
        if not success:
            raise DatabaseError(msg)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """컨텍스트 매니저 종료"""
        self.disconnect()
        return False

