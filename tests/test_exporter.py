"""
BackupExporter 테스트
"""
import os

import pytest
from unittest.mock import MagicMock

from conftest import npm_which, output_of


def exporting(workdir, suffix=".tar.gz", returncode=0, size=2048):
    """npm run strapi export 대체: workdir 에 <basename><suffix> 생성"""
    def _run(cmd, cwd):
        basename = cmd[cmd.index("-f") + 1]
        if returncode == 0 and suffix:
            with open(os.path.join(workdir, basename + suffix), 'wb') as f:
                f.write(os.urandom(size))
        return MagicMock(returncode=returncode)
    return _run


@pytest.fixture
def build_exporter(strapi_project):
    def _build(console, runner, which=npm_which):
        from strapikit.backup.exporter import BackupExporter
        from strapikit.backup.strapi_cli import StrapiCLI
        return BackupExporter(console, StrapiCLI(str(strapi_project), runner=runner, which=which))
    return _build


class TestBackupExporter:

    def test_export_moves_archive(self, build_exporter, make_console, strapi_project, tmp_path):
        runner = MagicMock(side_effect=exporting(str(strapi_project)))
        out_dir = tmp_path / 'out' / 'nested'
        console = make_console()

        rc = build_exporter(console, runner).run(str(out_dir))

        assert rc == 0
        cmd = runner.call_args[0][0]
        assert cmd[:5] == ["npm", "run", "strapi", "export", "--"]
        assert cmd[-1] == "--no-encrypt"
        assert cmd[6].startswith("backup-")
        archives = list(out_dir.glob('backup-*.tar.gz'))
        assert len(archives) == 1
        assert list(strapi_project.glob('backup-*')) == []
        out = output_of(console)
        assert f"Location: {archives[0]}" in out
        assert "Size: 2.0 KB" in out

    def test_plain_tar_is_accepted(self, build_exporter, make_console, strapi_project, tmp_path):
        runner = MagicMock(side_effect=exporting(str(strapi_project), suffix=".tar"))
        rc = build_exporter(make_console(), runner).run(str(tmp_path / 'out'))
        assert rc == 0
        assert len(list((tmp_path / 'out').glob('backup-*.tar'))) == 1

    def test_export_into_project_dir(self, build_exporter, make_console, strapi_project):
        """출력 디렉토리가 프로젝트 자신이면 이동 없음"""
        runner = MagicMock(side_effect=exporting(str(strapi_project)))
        rc = build_exporter(make_console(), runner).run(str(strapi_project))
        assert rc == 0
        assert len(list(strapi_project.glob('backup-*.tar.gz'))) == 1

    def test_strapi_export_failure(self, build_exporter, make_console, strapi_project, tmp_path):
        runner = MagicMock(side_effect=exporting(str(strapi_project), returncode=1))
        console = make_console()
        rc = build_exporter(console, runner).run(str(tmp_path))
        assert rc == 1
        assert "Backup export failed (exit code 1)" in output_of(console)

    def test_archive_not_produced(self, build_exporter, make_console, strapi_project, tmp_path):
        runner = MagicMock(side_effect=exporting(str(strapi_project), suffix=None))
        console = make_console()
        rc = build_exporter(console, runner).run(str(tmp_path))
        assert rc == 1
        assert "Backup file not found after export" in output_of(console)

    def test_npm_missing(self, build_exporter, make_console, tmp_path):
        runner = MagicMock()
        console = make_console()
        rc = build_exporter(console, runner, which=lambda name: None).run(str(tmp_path))
        assert rc == 1
        assert "npm is not installed" in output_of(console)
        runner.assert_not_called()

    def test_not_strapi_project(self, build_exporter, make_console, strapi_project, tmp_path):
        (strapi_project / 'package.json').write_text('{"name": "plain-node-app"}', encoding='utf-8')
        console = make_console()
        rc = build_exporter(console, MagicMock()).run(str(tmp_path))
        assert rc == 1
        assert "Strapi not found in package.json" in output_of(console)

    def test_output_dir_is_a_file(self, build_exporter, make_console, tmp_path):
        blocker = tmp_path / 'file'
        blocker.write_text('x')
        console = make_console()
        rc = build_exporter(console, MagicMock()).run(str(blocker / 'sub'))
        assert rc == 1
        assert "Cannot create output directory" in output_of(console)

    def test_interrupt(self, build_exporter, make_console, tmp_path):
        rc = build_exporter(make_console(), MagicMock(side_effect=KeyboardInterrupt)).run(str(tmp_path))
        assert rc == 130
