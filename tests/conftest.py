"""
pytest 공용 fixtures
"""
import io
import json
import os
import tarfile

import pytest
from unittest.mock import MagicMock

from strapikit.core.console import Console
from strapikit.core.env_config import ConnectionProfile


# ============================================================
# DB 테스트용 Fixtures
# ============================================================

class FakeMySQLConnector:
    """결정론적 DB 동작 시뮬레이터

    DB 없이 EncodingChecker/BackupImporter 등을 테스트하기 위한
    MySQLConnector 대체 객체.
    """

    def __init__(self):
        self.query_results = {}     # query pattern → rows
        self.fail_on = {}           # query pattern → Exception
        self.executed = []          # (sql, params) 실행 이력
        self._tables = {}           # schema → [table_names]
        self.sticky_tables = set()  # DROP 후에도 남는 테이블
        self.connect_result = (True, "연결 성공")
        self.connected = False

    def connect(self):
        self.connected = self.connect_result[0]
        return self.connect_result

    def disconnect(self):
        self.connected = False

    def _check_fail(self, sql):
        for pattern, exc in self.fail_on.items():
            if pattern in sql:
                raise exc

    def query(self, sql, params=None):
        self.executed.append((sql.strip(), params))
        self._check_fail(sql)
        for pattern, result in self.query_results.items():
            if pattern in sql:
                return [dict(row) for row in result]
        return []

    def run(self, sql, params=None):
        self.executed.append((sql.strip(), params))
        self._check_fail(sql)
        if sql.startswith("DROP TABLE"):
            for schema, tables in self._tables.items():
                self._tables[schema] = [t for t in tables if t in self.sticky_tables]
        return 0

    def get_tables(self, schema=None):
        return list(self._tables.get(schema, []))

    def count_tables(self, schema=None):
        return len(self._tables.get(schema, []))

    def executed_sql(self):
        return [sql for sql, _ in self.executed]


def encoding_rows(db_charset, db_collation, tables):
    """information_schema 조회 결과 생성

    Args:
        tables: [(name, charset, collation), ...]
    """
    return {
        'SCHEMATA': [{'charset_name': db_charset, 'collation_name': db_collation}],
        'COLLATION_CHARACTER_SET_APPLICABILITY': [
            {'table_name': name, 'charset_name': cs, 'collation_name': coll}
            for name, cs, coll in tables
        ],
    }


@pytest.fixture
def fake_connector():
    """빈 FakeMySQLConnector"""
    return FakeMySQLConnector()


@pytest.fixture
def mixed_encoding_connector():
    """DB 와 일부 테이블이 utf8 인 시나리오"""
    conn = FakeMySQLConnector()
    conn.query_results = encoding_rows('utf8', 'utf8_general_ci', [
        ('articles', 'utf8', 'utf8_general_ci'),
        ('authors', 'utf8mb4', 'utf8mb4_unicode_ci'),
        ('comments', 'latin1', 'latin1_swedish_ci'),
        ('tags', 'utf8', 'utf8_general_ci'),
    ])
    return conn


@pytest.fixture
def compliant_connector():
    """이미 utf8mb4 / utf8mb4_unicode_ci 인 시나리오"""
    conn = FakeMySQLConnector()
    conn.query_results = encoding_rows('utf8mb4', 'utf8mb4_unicode_ci', [
        ('articles', 'utf8mb4', 'utf8mb4_unicode_ci'),
        ('authors', 'utf8mb4', 'utf8mb4_unicode_ci'),
    ])
    return conn


@pytest.fixture
def mysql_profile():
    return ConnectionProfile(
        client='mysql',
        host='db.internal',
        port=3306,
        database='strapi_db',
        username='strapi',
        password='s3cret',
    )


@pytest.fixture
def sqlite_profile():
    return ConnectionProfile(client='sqlite')


# ============================================================
# Console Fixtures
# ============================================================

class ScriptedInput:
    """input() 대체: 미리 정한 답을 순서대로 반환, 소진 시 EOF"""

    def __init__(self, answers):
        self.answers = list(answers)
        self.asked = []

    def __call__(self, question):
        self.asked.append(question)
        if not self.answers:
            raise EOFError
        return self.answers.pop(0)


@pytest.fixture
def make_console():
    """make_console('yes', '1') → 답변이 정해진 Console (색상 없음)"""
    def _make(*answers):
        return Console(stream=io.StringIO(), input_func=ScriptedInput(answers), use_color=False)
    return _make


def output_of(console):
    return console.stream.getvalue()


# ============================================================
# Strapi 프로젝트 / 아카이브 Fixtures
# ============================================================

@pytest.fixture
def strapi_project(tmp_path):
    """package.json 에 strapi 의존성이 있는 프로젝트 디렉토리"""
    project = tmp_path / 'project'
    project.mkdir()
    package = {
        'name': 'my-cms',
        'scripts': {'strapi': 'strapi'},
        'dependencies': {'@strapi/strapi': '4.15.0'},
    }
    (project / 'package.json').write_text(json.dumps(package), encoding='utf-8')
    return project


@pytest.fixture
def npm_runner():
    """subprocess.run 대체 (returncode 0)"""
    runner = MagicMock()
    runner.return_value = MagicMock(returncode=0)
    return runner


def npm_which(name):
    return f"/usr/bin/{name}"


def write_tar_gz(path, payload_size=4096):
    """실제 tar.gz 백업 아카이브 생성"""
    payload = os.urandom(payload_size)
    with tarfile.open(path, 'w:gz') as tar:
        info = tarfile.TarInfo('export/entities/entities_00001.jsonl')
        info.size = len(payload)
        tar.addfile(info, io.BytesIO(payload))
    return path


@pytest.fixture
def tar_gz_backup(tmp_path):
    """프로젝트 밖 디렉토리에 있는 backup.tar.gz"""
    downloads = tmp_path / 'downloads'
    downloads.mkdir()
    return write_tar_gz(downloads / 'backup.tar.gz')
