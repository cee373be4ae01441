"""strapikit 예외 계층

라이브러리 코드는 아래 예외를 raise 하고, CLI 계층에서 한 번에 처리합니다.
"""


class ToolkitError(Exception):
    """모든 strapikit 오류의 기반 클래스"""
    pass


class ConfigError(ToolkitError):
    """.env 누락, 필수 값 누락 등 사전 조건 오류"""
    pass


class DatabaseError(ToolkitError):
    """DB 연결/쿼리 실패"""
    pass


class EncodingError(ToolkitError):
    """인코딩 검사/변환 오류"""
    pass


class ArchiveError(ToolkitError):
    """백업 아카이브 검증/압축 해제 오류"""
    pass


class DownloadError(ToolkitError):
    """다운로드 관련 오류"""
    pass


class SnapshotError(ToolkitError):
    """파괴적 작업 전 DB 스냅샷 생성 실패"""
    pass


class BackupImportError(ToolkitError):
    """Import 단계 실패"""
    pass


class ExportError(ToolkitError):
    """Export 단계 실패"""
    pass
