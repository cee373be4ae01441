"""
Strapi 자체 CLI 호출 (npm run strapi ...)

export/import 는 Strapi 명령에 위임합니다. 출력은 터미널로 그대로 흘려보냅니다.
"""
import os
import shutil
import subprocess
from typing import Callable, List, Optional

from strapikit.core.errors import ToolkitError
from strapikit.core.logger import get_logger

logger = get_logger('strapi_cli')


class StrapiCLI:
    """Strapi 프로젝트 디렉토리에서 npm 스크립트 실행"""

    def __init__(self, workdir: str = ".", runner: Optional[Callable] = None,
                 which: Optional[Callable[[str], Optional[str]]] = None):
        """
        Args:
            workdir: Strapi 프로젝트 디렉토리
            runner: subprocess.run 호환 함수 (테스트에서 교체)
            which: shutil.which 호환 함수
        """
        self.workdir = os.path.abspath(workdir)
        self._runner = runner or subprocess.run
        self._which = which or shutil.which

    def check_project(self, error_cls=ToolkitError) -> List[str]:
        """
        사전 점검: package.json, strapi 의존성, npm

        Returns:
            통과한 점검 항목 메시지 목록

        Raises:
            error_cls: 점검 실패
        """
        passed = []
        package_json = os.path.join(self.workdir, "package.json")
        if not os.path.isfile(package_json):
            raise error_cls("package.json not found. Are you in a Strapi project directory?")
        passed.append("Strapi project detected")

        if not self._which("npm"):
            raise error_cls("npm is not installed or not in PATH")
        passed.append("npm is available")

        with open(package_json, 'r', encoding='utf-8') as f:
            if '"strapi"' not in f.read():
                raise error_cls("Strapi not found in package.json")
        passed.append("Strapi command verified")
        return passed

    def _run(self, args: List[str]) -> int:
        cmd = ["npm", "run", "strapi", *args]
        logger.info(f"실행: {' '.join(cmd)} (cwd={self.workdir})")
        try:
            result = self._runner(cmd, cwd=self.workdir)
        except FileNotFoundError:
            logger.error("npm 실행 파일을 찾을 수 없음")
            return 127
        logger.info(f"종료 코드: {result.returncode}")
        return result.returncode

    def import_archive(self, filename: str) -> int:
        """npm run strapi import -- -f <file> --force"""
        return self._run(["import", "--", "-f", filename, "--force"])

    def export_archive(self, basename: str) -> int:
        """npm run strapi export -- -f <basename> --no-encrypt"""
        return self._run(["export", "--", "-f", basename, "--no-encrypt"])
