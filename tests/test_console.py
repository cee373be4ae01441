"""
Console 출력/입력 및 포맷 함수 테스트
"""
import io

import pytest

from conftest import output_of


class TestConsoleOutput:

    def test_prefixes_without_color(self, make_console):
        console = make_console()
        console.success("done")
        console.info("working")
        console.warn("careful")
        console.error("broken")

        assert output_of(console).splitlines() == [
            "[✓] done",
            "[→] working",
            "[!] careful",
            "[✗] Error: broken",
        ]

    def test_color_codes(self):
        from strapikit.core.console import Colors, Console
        console = Console(stream=io.StringIO(), use_color=True)
        console.success("ok")
        assert output_of(console) == f"{Colors.GREEN}[✓] ok{Colors.RESET}\n"

    def test_non_tty_defaults_to_plain(self):
        from strapikit.core.console import Console
        assert Console(stream=io.StringIO()).use_color is False

    def test_banner(self, make_console):
        console = make_console()
        console.banner("Strapi Backup Import")
        lines = output_of(console).splitlines()
        assert lines[0] == "=" * 40
        assert lines[1] == "    Strapi Backup Import"
        assert lines[2] == "=" * 40


class TestConsoleInput:

    @pytest.mark.parametrize('answer,expected', [
        ('yes', True), ('YES', True), (' Yes ', True),
        ('y', False), ('no', False), ('', False), ('yess', False),
    ])
    def test_confirm_requires_literal_yes(self, make_console, answer, expected):
        assert make_console(answer).confirm("Continue? (yes/NO): ") is expected

    def test_eof_is_no(self, make_console):
        """입력이 닫히면 NO 로 취급"""
        assert make_console().confirm("Continue? (yes/NO): ") is False

    def test_prompt_strips(self, make_console):
        assert make_console('  https://x/b.tar.gz \n').prompt("URL: ") == 'https://x/b.tar.gz'


class TestFormatting:

    @pytest.mark.parametrize('size,text', [
        (0, "0 B"),
        (1023, "1023 B"),
        (1024, "1.0 KB"),
        (1536, "1.5 KB"),
        (5 * 1024 * 1024, "5.0 MB"),
        (3 * 1024 ** 3, "3.0 GB"),
        (2048 * 1024 ** 3, "2048.0 GB"),
    ])
    def test_format_bytes(self, size, text):
        from strapikit.core.console import format_bytes
        assert format_bytes(size) == text

    @pytest.mark.parametrize('seconds,text', [
        (0, "0s"), (5.9, "5s"), (65, "1m 5s"), (600, "10m 0s"),
    ])
    def test_format_duration(self, seconds, text):
        from strapikit.core.console import format_duration
        assert format_duration(seconds) == text
