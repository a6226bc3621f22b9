"""
core/constants.py 테스트

모든 경로가 pathlib.Path 타입이고, 상수가 정상적으로 접근 가능한지 확인
"""

from decimal import Decimal
from pathlib import Path

from core.constants import PROJECT_ROOT, UNKNOWN_NAME, Defaults, Money, Paths


class TestProjectRoot:
    """PROJECT_ROOT 테스트"""

    def test_project_root_is_absolute_path(self) -> None:
        assert isinstance(PROJECT_ROOT, Path)
        assert PROJECT_ROOT.is_absolute()

    def test_project_root_contains_core_directory(self) -> None:
        assert (PROJECT_ROOT / "core").exists()


class TestPaths:
    """Paths 테스트"""

    def test_all_paths_are_path(self) -> None:
        for name in ("CONFIG_DIR", "DATA_DIR", "LOGS_DIR", "SETTINGS_FILE", "PROD_DB", "DEV_DB"):
            assert isinstance(getattr(Paths, name), Path), name

    def test_db_files_under_data_dir(self) -> None:
        assert Paths.PROD_DB.parent == Paths.DATA_DIR
        assert Paths.DEV_DB.parent == Paths.DATA_DIR
        assert Paths.PROD_DB != Paths.DEV_DB

    def test_log_dirs_under_logs(self) -> None:
        assert Paths.WEB_LOGS_DIR.parent == Paths.LOGS_DIR
        assert Paths.SCRIPTS_LOGS_DIR.parent == Paths.LOGS_DIR


class TestDefaults:
    """Defaults 테스트"""

    def test_page_sizes(self) -> None:
        assert 1 <= Defaults.PAGE_SIZE <= Defaults.MAX_PAGE_SIZE
        assert Defaults.LIST_LIMIT <= Defaults.MAX_PAGE_SIZE


class TestMoney:
    """Money 테스트"""

    def test_two_decimal_places(self) -> None:
        assert Money.QUANTUM == Decimal("0.01")
        assert str(Money.ZERO) == "0.00"

    def test_unknown_name(self) -> None:
        assert UNKNOWN_NAME == "Unknown"
