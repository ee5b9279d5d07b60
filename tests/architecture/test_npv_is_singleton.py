import re
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]  # repo root
METRICS = ROOT / "pmi_bizcase" / "finance" / "metrics.py"

EXCLUDE_DIRS = {
    ".venv", "venv", ".git", ".pytest_cache", "build",
    "dist", "__pycache__", ".mypy_cache", ".tox", ".eggs"
}

def _skip(p: Path) -> bool:
    parts = set(p.parts)
    if "site-packages" in parts or "dist-packages" in parts:
        return True
    if any(d in parts for d in EXCLUDE_DIRS):
        return True
    return False

def test_only_metrics_module_defines_npv_and_mirr():
    hits = []
    for p in ROOT.rglob("*.py"):
        if _skip(p):
            continue
        if p == METRICS:
            continue
        text = p.read_text(encoding="utf-8", errors="ignore")
        if re.search(r"\bdef\s+npv\s*\(", text) or re.search(r"\bdef\s+calculate_mirr\s*\(", text):
            hits.append(str(p))
    assert not hits, f"Found NPV/MIRR defs outside finance/metrics.py: {hits}"
