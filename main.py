# -*- coding: utf-8 -*-
import io
import sys

# Windows 콘솔 UTF-8 출력 지원 ([✓] 등 기호 출력을 위해)
if sys.platform == 'win32':
    if sys.stdout is not None and hasattr(sys.stdout, 'buffer'):
        sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8', errors='replace', line_buffering=True)
    if sys.stderr is not None and hasattr(sys.stderr, 'buffer'):
        sys.stderr = io.TextIOWrapper(sys.stderr.buffer, encoding='utf-8', errors='replace', line_buffering=True)

from strapikit.cli import main

if __name__ == '__main__':
    sys.exit(main())
