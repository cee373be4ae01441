"""
ArchiveDownloader 테스트 (네트워크 없이 requests.Session Mock 사용)
"""
import os

import pytest
import requests
from unittest.mock import MagicMock


def make_session(status=200, chunks=(b'abc', b'', b'def'), headers=None, get_side_effect=None):
    response = MagicMock()
    response.status_code = status
    response.headers = headers if headers is not None else {'content-length': '6'}
    response.iter_content.return_value = iter(chunks)
    session = MagicMock()
    if get_side_effect:
        session.get.side_effect = get_side_effect
    else:
        session.get.return_value = response
    return session, response


class TestFilenameFromUrl:

    @pytest.mark.parametrize('url,name', [
        ("https://cdn.example.com/backups/backup-1.tar.gz", "backup-1.tar.gz"),
        ("https://s3.example.com/b/backup.tar.gz?X-Amz-Signature=abc&x=1", "backup.tar.gz"),
        ("https://example.com/files/my%20backup.tar", "my backup.tar"),
    ])
    def test_basename(self, url, name):
        from strapikit.backup.downloader import filename_from_url
        assert filename_from_url(url) == name

    def test_no_filename(self):
        from strapikit.backup.downloader import filename_from_url
        from strapikit.core.errors import DownloadError
        with pytest.raises(DownloadError, match="Could not extract filename"):
            filename_from_url("https://example.com/")


class TestArchiveDownloader:

    def test_download_success(self, tmp_path):
        from strapikit.backup.downloader import ArchiveDownloader
        session, response = make_session()
        progress = []

        path = ArchiveDownloader(session).download(
            "https://example.com/b/backup.tar.gz", str(tmp_path),
            progress_callback=lambda done, total: progress.append((done, total))
        )

        assert path == os.path.join(str(tmp_path), 'backup.tar.gz')
        with open(path, 'rb') as f:
            assert f.read() == b'abcdef'
        assert progress == [(3, 6), (6, 6)]
        _, kwargs = session.get.call_args
        assert kwargs['stream'] is True
        assert kwargs['allow_redirects'] is True

    def test_last_status_recorded(self, tmp_path):
        from strapikit.backup.downloader import ArchiveDownloader
        session, _ = make_session(status=200, headers={})
        downloader = ArchiveDownloader(session)
        downloader.download("https://example.com/backup.tar", str(tmp_path))
        assert downloader.last_status == 200

    @pytest.mark.parametrize('status', [403, 404, 500])
    def test_http_error(self, tmp_path, status):
        from strapikit.backup.downloader import ArchiveDownloader
        from strapikit.core.errors import DownloadError
        session, _ = make_session(status=status)

        with pytest.raises(DownloadError, match=f"HTTP status {status}"):
            ArchiveDownloader(session).download("https://example.com/backup.tar.gz", str(tmp_path))
        assert not (tmp_path / 'backup.tar.gz').exists()

    def test_timeout(self, tmp_path):
        from strapikit.backup.downloader import ArchiveDownloader
        from strapikit.core.errors import DownloadError
        session, _ = make_session(get_side_effect=requests.exceptions.Timeout())
        with pytest.raises(DownloadError, match="timed out"):
            ArchiveDownloader(session).download("https://example.com/backup.tar.gz", str(tmp_path))

    def test_connection_drop_removes_partial_file(self, tmp_path):
        """스트리밍 도중 연결이 끊기면 부분 파일 삭제"""
        from strapikit.backup.downloader import ArchiveDownloader
        from strapikit.core.errors import DownloadError

        def broken_stream(chunk_size):
            yield b'partial'
            raise requests.exceptions.ConnectionError("reset by peer")

        session, response = make_session()
        response.iter_content.side_effect = broken_stream

        with pytest.raises(DownloadError, match="Could not connect"):
            ArchiveDownloader(session).download("https://example.com/backup.tar.gz", str(tmp_path))
        assert not (tmp_path / 'backup.tar.gz').exists()
