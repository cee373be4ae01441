"""중앙 상수 모듈

DB 접속 기본값, 목표 인코딩, 안전 검증 임계값을 한 곳에서 관리합니다.
"""

# .env 에 값이 없을 때 사용하는 기본 접속 정보
DEFAULT_DB_CLIENT = 'mysql'
DEFAULT_DB_HOST = 'localhost'
DEFAULT_MYSQL_PORT = 3306

# Strapi DATABASE_CLIENT 값 중 MySQL 계열로 취급하는 것들
MYSQL_FAMILY_CLIENTS = frozenset({
    'mysql',
    'mysql2',
    'mariadb',
})
SQLITE_CLIENT = 'sqlite'

# 변환 목표 charset / collation
TARGET_CHARSET = 'utf8mb4'
TARGET_COLLATION = 'utf8mb4_unicode_ci'

# 다운로드 받은 아카이브의 최소 크기 (이보다 작으면 에러 페이지로 간주)
MIN_ARCHIVE_SIZE = 1024

# gzip 압축된 DB 스냅샷의 최소 크기
MIN_SNAPSHOT_SIZE = 100

# MySQL 시스템 스키마 목록 (파괴적 작업 대상에서 제외)
SYSTEM_SCHEMAS = frozenset({
    'information_schema',
    'mysql',
    'performance_schema',
    'sys',
})
