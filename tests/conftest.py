from pathlib import Path
import sys
import pytest
import yaml

SRC_DIR = Path(__file__).resolve().parents[1] / "src"
if SRC_DIR.exists() and str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from gwg_lca.models import default_input  # noqa: E402


@pytest.fixture(scope="session")
def repo_root() -> Path:
    return Path(__file__).resolve().parents[1]


@pytest.fixture(scope="session")
def data_dir(repo_root: Path) -> Path:
    d = repo_root / "datasets" / "gwg"
    if not d.exists():
        pytest.skip("datasets/gwg directory not found; skipping data-dependent tests.")
    return d


@pytest.fixture(scope="session")
def yload():
    def _load(p: Path):
        with p.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f)
    return _load


@pytest.fixture
def base_input():
    # 1000 kg, 95 % yield, TPS 60 / HDPE_RECYCLE 20 / LDPE_RECYCLE 10 + 5 x 2 % additives,
    # 600 kWh pelletizing, 3200 km sea + 200 km land
    return default_input()
