"""
운영자 출력 / 입력

모든 메시지는 색상 prefix 한 줄로 출력합니다.
- [✓] 성공 (녹색)
- [✗] 오류 (빨강)
- [→] 진행 정보 (파랑)
- [!] 경고 (노랑)

stdout 이 터미널이 아니면 색상 코드를 생략하고, 출력한 메시지는
파일 로그에도 함께 남깁니다.
"""
import re
import sys
from datetime import datetime
from typing import Callable, Optional, TextIO

from strapikit.core.logger import get_logger

logger = get_logger('console')

# yes/NO 질문은 'yes' 입력만 승인으로 취급
_YES_PATTERN = re.compile(r'^[Yy][Ee][Ss]$')


class Colors:
    """ANSI color codes for terminal output."""
    GREEN = '\033[0;32m'
    YELLOW = '\033[1;33m'
    RED = '\033[0;31m'
    BLUE = '\033[0;34m'
    CYAN = '\033[0;36m'
    RESET = '\033[0m'


class Console:
    """색상 prefix 출력과 대화형 입력을 담당"""

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        input_func: Optional[Callable[[str], str]] = None,
        use_color: Optional[bool] = None
    ):
        """
        Args:
            stream: 출력 스트림 (기본 sys.stdout)
            input_func: 입력 함수 (기본 input, 테스트에서 교체)
            use_color: 색상 사용 여부 (None 이면 TTY 여부로 결정)
        """
        self.stream = stream if stream is not None else sys.stdout
        self._input = input_func or input
        if use_color is None:
            isatty = getattr(self.stream, 'isatty', None)
            use_color = bool(isatty and isatty())
        self.use_color = use_color

    def _paint(self, text: str, color: str) -> str:
        if not self.use_color:
            return text
        return f"{color}{text}{Colors.RESET}"

    def line(self, text: str = ""):
        """prefix 없는 일반 출력"""
        print(text, file=self.stream)

    def success(self, message: str):
        logger.info(message)
        self.line(self._paint(f"[✓] {message}", Colors.GREEN))

    def info(self, message: str):
        logger.info(message)
        self.line(self._paint(f"[→] {message}", Colors.BLUE))

    def warn(self, message: str):
        logger.warning(message)
        self.line(self._paint(f"[!] {message}", Colors.YELLOW))

    def error(self, message: str):
        logger.error(message)
        self.line(self._paint(f"[✗] Error: {message}", Colors.RED))

    def header(self, message: str):
        self.line(self._paint(message, Colors.CYAN))

    def colored(self, text: str, ok: bool):
        """준수 여부에 따라 녹색/노랑으로 출력 (표 형식 행용)"""
        self.line(self._paint(text, Colors.GREEN if ok else Colors.YELLOW))

    def banner(self, title: str, started: bool = False):
        """구분선 배너 출력"""
        self.line("=" * 40)
        self.line(f"    {title}")
        if started:
            self.line(f"    Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        self.line("=" * 40)
        self.line()

    def prompt(self, question: str) -> str:
        """한 줄 입력. EOF 는 빈 문자열로 취급"""
        try:
            answer = self._input(question)
        except EOFError:
            answer = ""
        answer = (answer or "").strip()
        logger.debug(f"prompt: {question.strip()} -> {answer!r}")
        return answer

    def confirm(self, question: str) -> bool:
        """yes/NO 확인 (기본값 NO)"""
        return bool(_YES_PATTERN.match(self.prompt(question)))


def format_bytes(size_bytes: int) -> str:
    """바이트 크기를 읽기 쉬운 형식으로 변환 (소수점 1자리)"""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    size = float(size_bytes)
    for unit in ['KB', 'MB', 'GB']:
        size /= 1024.0
        if size < 1024.0 or unit == 'GB':
            return f"{size:.1f} {unit}"


def format_duration(seconds: float) -> str:
    """초를 '1m 5s' / '5s' 형식으로 변환"""
    seconds = int(seconds)
    minutes, remaining = divmod(seconds, 60)
    if minutes > 0:
        return f"{minutes}m {remaining}s"
    return f"{remaining}s"
