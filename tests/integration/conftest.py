import pytest
import shutil
from pathlib import Path

OUTPUT_DIRECTORIES = ["logs", "artifacts"]


@pytest.fixture(scope="session", autouse=True)
def reset_report_directories():
    """
    セッション開始時に、失敗レポート (logs) とコンパイル結果 (artifacts) の出力先を作り直す
    """
    base_dir = Path(__file__).parent

    for name in OUTPUT_DIRECTORIES:
        target_dir = base_dir / name
        if target_dir.exists():
            shutil.rmtree(target_dir)
        target_dir.mkdir(exist_ok=True)
