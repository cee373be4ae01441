"""
Strapi 프로젝트 .env 에서 DB 접속 정보 로드

읽는 키: DATABASE_CLIENT, DATABASE_HOST, DATABASE_PORT,
        DATABASE_NAME, DATABASE_USERNAME, DATABASE_PASSWORD
"""
import os
from dataclasses import dataclass

from dotenv import dotenv_values

from strapikit.core.constants import (
    DEFAULT_DB_CLIENT, DEFAULT_DB_HOST, DEFAULT_MYSQL_PORT,
    MYSQL_FAMILY_CLIENTS, SQLITE_CLIENT
)
from strapikit.core.errors import ConfigError
from strapikit.core.logger import get_logger

logger = get_logger('env_config')


@dataclass(frozen=True)
class ConnectionProfile:
    """DB 접속 정보 (실행 중 변경되지 않음)"""
    client: str = DEFAULT_DB_CLIENT
    host: str = DEFAULT_DB_HOST
    port: int = DEFAULT_MYSQL_PORT
    database: str = ""
    username: str = ""
    password: str = ""

    @property
    def is_mysql_family(self) -> bool:
        return self.client in MYSQL_FAMILY_CLIENTS

    @property
    def is_sqlite(self) -> bool:
        return self.client.startswith(SQLITE_CLIENT)

    def describe(self) -> str:
        """비밀번호를 제외한 접속 정보 문자열"""
        if self.is_sqlite:
            return f"{self.client} (local file)"
        return f"{self.username}@{self.host}:{self.port}/{self.database}"


def _read_value(values: dict, key: str) -> str:
    # 'KEY' 만 있고 '=' 가 없는 행은 None 으로 들어옴
    value = values.get(key)
    return value.strip() if value else ""


def load_connection_profile(env_path: str = ".env") -> ConnectionProfile:
    """.env 파일에서 ConnectionProfile 생성

    Args:
        env_path: .env 파일 경로

    Returns:
        ConnectionProfile

    Raises:
        ConfigError: 파일이 없거나 필수 값이 누락된 경우
    """
    if not os.path.isfile(env_path):
        raise ConfigError(".env file not found. Are you in a Strapi project directory?")

    values = dotenv_values(env_path)

    client = _read_value(values, 'DATABASE_CLIENT') or DEFAULT_DB_CLIENT
    host = _read_value(values, 'DATABASE_HOST') or DEFAULT_DB_HOST
    port_text = _read_value(values, 'DATABASE_PORT') or str(DEFAULT_MYSQL_PORT)
    database = _read_value(values, 'DATABASE_NAME')
    username = _read_value(values, 'DATABASE_USERNAME')
    password = _read_value(values, 'DATABASE_PASSWORD')

    try:
        port = int(port_text)
    except ValueError:
        raise ConfigError(f"DATABASE_PORT is not a number: {port_text}")

    profile = ConnectionProfile(
        client=client.lower(),
        host=host,
        port=port,
        database=database,
        username=username,
        password=password,
    )

    if profile.is_mysql_family:
        if not database:
            raise ConfigError("DATABASE_NAME not found in .env")
        if not username:
            raise ConfigError("DATABASE_USERNAME not found in .env")

    logger.debug(f"접속 정보 로드: {profile.describe()} ({env_path})")
    return profile
