"""원격 URL 에서 백업 아카이브 다운로드"""

import os
from typing import Callable, Optional
from urllib.parse import urlparse, unquote

import requests

from strapikit.core.errors import DownloadError
from strapikit.core.logger import get_logger

logger = get_logger('downloader')


def filename_from_url(url: str) -> str:
    """URL 경로의 마지막 요소 (쿼리 문자열 제외)

    Raises:
        DownloadError: 파일명을 추출할 수 없는 경우
    """
    filename = os.path.basename(unquote(urlparse(url).path))
    if not filename:
        raise DownloadError("Could not extract filename from URL")
    return filename


class ArchiveDownloader:
    """백업 아카이브 다운로드 (redirect 자동 추적)"""

    TIMEOUT = 30  # 연결/응답 타임아웃 (초)
    CHUNK_SIZE = 8192  # 다운로드 청크 크기 (바이트)

    def __init__(self, session: Optional[requests.Session] = None):
        self._session = session or requests.Session()
        self.last_status: Optional[int] = None

    def download(
        self,
        url: str,
        dest_dir: str,
        progress_callback: Optional[Callable[[int, int], None]] = None
    ) -> str:
        """
        URL 을 dest_dir 에 저장

        Args:
            url: 백업 파일 URL
            dest_dir: 저장 디렉토리
            progress_callback: 진행률 콜백 함수 (downloaded_bytes, total_bytes)

        Returns:
            다운로드된 파일의 경로

        Raises:
            DownloadError: HTTP 오류 또는 네트워크 실패
        """
        filename = filename_from_url(url)
        file_path = os.path.join(dest_dir, filename)

        try:
            response = self._session.get(url, stream=True, timeout=self.TIMEOUT, allow_redirects=True)
            self.last_status = response.status_code
            if response.status_code >= 400:
                raise DownloadError(
                    f"Download failed with HTTP status {response.status_code}. Please check the URL."
                )

            total_size = int(response.headers.get('content-length', 0) or 0)
            downloaded = 0
            with open(file_path, 'wb') as f:
                for chunk in response.iter_content(chunk_size=self.CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
                        downloaded += len(chunk)
                        if progress_callback and total_size > 0:
                            progress_callback(downloaded, total_size)

            logger.info(f"다운로드 완료: {url} -> {file_path} ({downloaded} bytes, HTTP {response.status_code})")
            return file_path

        except requests.exceptions.Timeout:
            self._discard(file_path)
            raise DownloadError("Download timed out. Please check your connection and try again.")
        except requests.exceptions.ConnectionError as e:
            self._discard(file_path)
            raise DownloadError(f"Could not connect to server: {e}")
        except requests.exceptions.RequestException as e:
            self._discard(file_path)
            raise DownloadError(f"Download failed: {e}")
        except IOError as e:
            self._discard(file_path)
            raise DownloadError(f"Failed to save downloaded file: {e}")

    @staticmethod
    def _discard(file_path: str):
        if os.path.exists(file_path):
            os.remove(file_path)
