from .errors import (
    ToolkitError, ConfigError, DatabaseError, EncodingError, ArchiveError,
    DownloadError, SnapshotError, BackupImportError, ExportError
)
from .console import Console, Colors, format_bytes, format_duration
from .env_config import ConnectionProfile, load_connection_profile
from .db_connector import MySQLConnector, quote_identifier
from .encoding import (
    EncodingPair, TableEncoding, SchemaSnapshot, RemediationPlan, ConversionResult,
    ConversionScope, EncodingInspector, ConversionExecutor, EncodingChecker,
    build_plan, parse_table_selection
)

__all__ = [
    'ToolkitError', 'ConfigError', 'DatabaseError', 'EncodingError', 'ArchiveError',
    'DownloadError', 'SnapshotError', 'BackupImportError', 'ExportError',
    'Console', 'Colors', 'format_bytes', 'format_duration',
    'ConnectionProfile', 'load_connection_profile',
    'MySQLConnector', 'quote_identifier',
    # 인코딩 검사/변환
    'EncodingPair', 'TableEncoding', 'SchemaSnapshot', 'RemediationPlan', 'ConversionResult',
    'ConversionScope', 'EncodingInspector', 'ConversionExecutor', 'EncodingChecker',
    'build_plan', 'parse_table_selection'
]
