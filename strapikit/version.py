"""버전 정보 - Single Source of Truth

모든 버전 참조는 이 파일을 사용해야 합니다.
"""

__version__ = "1.0.0"
__app_name__ = "strapikit"
