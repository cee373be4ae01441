"""
파괴적 작업 전 DB 스냅샷

mysqldump 로 현재 DB 를 덤프한 뒤 gzip 으로 압축합니다.
스냅샷 파일은 실패 시에도 자동 삭제하지 않습니다 (수동 복구용).
"""
import gzip
import os
import shutil
import subprocess
import time
from pathlib import Path
from typing import List

from strapikit.core.constants import MIN_SNAPSHOT_SIZE
from strapikit.core.errors import SnapshotError
from strapikit.core.logger import get_logger

logger = get_logger('snapshot')


class DatabaseSnapshotter:
    """mysqldump 기반 스냅샷 생성"""

    DUMP_TIMEOUT = 3600  # 1시간

    def __init__(self, profile, output_dir: str, dump_binary: str = "mysqldump"):
        """
        Args:
            profile: ConnectionProfile (MySQL 계열)
            output_dir: 스냅샷 저장 디렉토리
            dump_binary: mysqldump 실행 파일
        """
        self.profile = profile
        self.output_dir = Path(output_dir)
        self.dump_binary = dump_binary

    def build_command(self) -> List[str]:
        """mysqldump 명령 구성 (비밀번호는 MYSQL_PWD 환경 변수로 전달)"""
        p = self.profile
        return [
            self.dump_binary,
            "-h", p.host,
            "-P", str(p.port),
            "-u", p.username,
            "--single-transaction",
            "--routines",
            "--triggers",
            "--default-character-set=utf8mb4",
            p.database,
        ]

    def _build_env(self) -> dict:
        env = dict(os.environ)
        if self.profile.password:
            env["MYSQL_PWD"] = self.profile.password
        return env

    def create(self) -> Path:
        """
        스냅샷 생성

        Returns:
            db-snapshot-<database>-<epoch>.sql.gz 경로

        Raises:
            SnapshotError: 덤프 실패, 또는 결과 파일이 최소 크기 미만
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        stem = f"db-snapshot-{self.profile.database}-{int(time.time())}"
        raw_path = self.output_dir / f"{stem}.sql"
        snapshot_path = self.output_dir / f"{stem}.sql.gz"

        cmd = self.build_command()
        logger.info(f"스냅샷 생성: {' '.join(cmd)} -> {snapshot_path}")

        try:
            with open(raw_path, 'wb') as raw:
                result = subprocess.run(
                    cmd,
                    stdout=raw,
                    stderr=subprocess.PIPE,
                    env=self._build_env(),
                    timeout=self.DUMP_TIMEOUT
                )
        except FileNotFoundError:
            raw_path.unlink(missing_ok=True)
            raise SnapshotError(f"{self.dump_binary} is not installed or not in PATH")
        except subprocess.TimeoutExpired:
            raise SnapshotError(f"Database dump timed out; partial dump left at {raw_path}")

        if result.returncode != 0:
            stderr = (result.stderr or b"").decode('utf-8', errors='replace').strip()
            raise SnapshotError(
                f"Database dump failed (exit {result.returncode}): {stderr or 'unknown error'}"
            )

        with open(raw_path, 'rb') as src, gzip.open(snapshot_path, 'wb') as dst:
            shutil.copyfileobj(src, dst)
        raw_path.unlink()

        size = snapshot_path.stat().st_size
        if size < MIN_SNAPSHOT_SIZE:
            raise SnapshotError(
                f"Database snapshot is too small ({size} bytes): {snapshot_path}"
            )

        logger.info(f"스냅샷 완료: {snapshot_path} ({size} bytes)")
        return snapshot_path
