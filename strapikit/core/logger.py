"""
strapikit 통합 로깅 시스템

- 파일 로깅: ~/.config/strapikit/logs/strapikit.log (STRAPIKIT_LOG_DIR 로 변경 가능)
- 콘솔 로깅: --verbose 지정 시 stderr 로 출력
- 로그 로테이션: 5MB, 최대 3개 백업

운영자에게 보이는 메시지는 core.console 이 담당하고, 여기서는
사후 분석용 기록만 남깁니다.
"""
import logging
import os
import sys
from logging.handlers import RotatingFileHandler

ROOT_LOGGER_NAME = 'strapikit'

LOG_FORMAT = '[%(asctime)s] %(levelname)s [%(name)s] %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3


def _resolve_log_dir() -> str:
    override = os.environ.get('STRAPIKIT_LOG_DIR')
    if override:
        return override
    if os.name == 'nt':
        return os.path.join(os.environ.get('LOCALAPPDATA', ''), 'strapikit', 'logs')
    return os.path.join(os.path.expanduser('~'), '.config', 'strapikit', 'logs')


LOG_DIR = _resolve_log_dir()
LOG_FILE = os.path.join(LOG_DIR, 'strapikit.log')

_configured = False


def get_logger(name: str) -> logging.Logger:
    """모듈별 로거 반환 ('strapikit.<name>')

    사용법:
        from strapikit.core.logger import get_logger
        logger = get_logger('importer')
        logger.info("메시지")
    """
    global _configured
    if not _configured:
        _configure_root()
        _configured = True
    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def _configure_root():
    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(logging.DEBUG)
    root.propagate = False
    if root.handlers:
        return

    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        handler = RotatingFileHandler(
            LOG_FILE,
            maxBytes=LOG_MAX_BYTES,
            backupCount=LOG_BACKUP_COUNT,
            encoding='utf-8'
        )
    except OSError as e:
        # 파일 로깅 없이 계속 진행
        print(f"[Logger] 파일 로깅 초기화 실패: {e}", file=sys.stderr)
        root.addHandler(logging.NullHandler())
        return

    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    root.addHandler(handler)


def enable_console_logging(level: int = logging.DEBUG):
    """stderr 핸들러 추가 (--verbose). 중복 호출 시 레벨만 갱신"""
    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in root.handlers:
        if getattr(handler, '_strapikit_console', False):
            handler.setLevel(level)
            return

    if sys.stderr is None:
        return

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, LOG_DATE_FORMAT))
    handler._strapikit_console = True
    root.addHandler(handler)


def get_log_file_path() -> str:
    return LOG_FILE
