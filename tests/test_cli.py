import json

import pytest
import yaml

from pmi_bizcase import cli

CASE = """\
financial: {currency: CAD, horizonMonths: 12, discountRatePct: 0, requireNPV: true}
options:
  - id: baseline
    name: Status quo
    isBaseline: true
    lineItems:
      - {kind: cost, category: opex, amount: 10, recurrence: monthly}
  - id: proposed
    name: Upgrade
    isBaseline: false
    lineItems:
      - {kind: cost, category: capex, amount: 1200, recurrence: one-time}
      - {kind: benefit, category: productivity, amount: 100, recurrence: monthly, startMonth: 1}
"""


@pytest.fixture(autouse=True)
def _no_mode_env(monkeypatch):
    monkeypatch.delenv("VALIDATION_MODE", raising=False)


def _write(tmp_path, name, text):
    p = tmp_path / name
    p.write_text(text, encoding="utf-8")
    return p


def test_cli_demo_case(tmp_path):
    assert cli.main(["--outputs-dir", str(tmp_path)]) == 0
    summary = json.loads((tmp_path / "summary.json").read_text(encoding="utf-8"))
    assert summary["validation"]["isValid"] is True
    assert list(tmp_path.glob("demo_business_case_results_*.csv"))


def test_cli_single_file_jsonl(tmp_path):
    cfg = _write(tmp_path, "upgrade.yaml", CASE)
    out = tmp_path / "out"
    rc = cli.main(["--config", str(cfg), "--outputs-dir", str(out), "--format", "jsonl", "--save-monthly"])
    assert rc == 0
    rows = [json.loads(line) for line in next(out.glob("upgrade_results_*.jsonl")).read_text().splitlines()]
    assert [r["optionId"] for r in rows] == ["baseline", "proposed"]
    assert rows[1]["npv"] == pytest.approx(-100.0)
    assert list(out.glob("upgrade_monthly_*.csv"))


def test_cli_directory_of_cases(tmp_path):
    in_dir = tmp_path / "cases"
    out_dir = tmp_path / "out"
    in_dir.mkdir()
    _write(in_dir, "a.yaml", CASE)
    _write(in_dir, "b.yaml", CASE)
    assert cli.main(["--config", str(in_dir), "--outputs-dir", str(out_dir)]) == 0
    assert (out_dir / "a" / "summary.json").exists()
    assert (out_dir / "b" / "summary.json").exists()


def test_cli_policy_errors_exit_1(tmp_path):
    cfg = _write(tmp_path, "bad.yaml", CASE.replace("amount: 1200", "amount: 0"))
    assert cli.main(["--config", str(cfg), "--outputs-dir", str(tmp_path / "out")]) == 1


def test_cli_schema_errors_exit_2(tmp_path, capsys):
    cfg = _write(tmp_path, "broken.yaml", "financial: {horizonMonths: 12}\n")
    assert cli.main(["--config", str(cfg), "--outputs-dir", str(tmp_path / "out")]) == 2
    assert "missing required keys" in capsys.readouterr().err


def test_cli_non_mapping_record_exits_2(tmp_path):
    cfg = _write(tmp_path, "list.yaml", "- not\n- a record\n")
    assert cli.main(["--config", str(cfg), "--outputs-dir", str(tmp_path / "out")]) == 2


def test_cli_strict_flag_raises_on_bad_amount(tmp_path):
    cfg = _write(tmp_path, "bad.yaml", CASE.replace("amount: 1200", "amount: 0"))
    assert cli.main(["--strict", "--config", str(cfg), "--outputs-dir", str(tmp_path / "out")]) == 2


def test_cli_validate_mode(tmp_path):
    cfg = _write(tmp_path, "upgrade.yaml", CASE)
    out = tmp_path / "out"
    assert cli.main(["--mode", "validate", "--config", str(cfg), "--outputs-dir", str(out)]) == 0
    summary = json.loads((out / "summary.json").read_text(encoding="utf-8"))
    assert summary["schemaValid"] is True
    assert not list(out.glob("*_results_*"))


def test_cli_org_config(tmp_path):
    cfg = _write(tmp_path, "upgrade.yaml", CASE)
    policy = _write(tmp_path, "org.yaml", "organizational:\n  npvThreshold: 100\n  irrThreshold: 100\n")
    out = tmp_path / "out"
    assert cli.main(["--config", str(cfg), "--org-config", str(policy), "--outputs-dir", str(out)]) == 0
    summary = json.loads((out / "summary.json").read_text(encoding="utf-8"))
    fields = [w["field"] for w in summary["validation"]["warnings"]]
    assert "financial.requireMIRR" in fields
    assert "financial.requireNPV" not in fields


def test_cli_invalid_mode_exits_2():
    # argparse enforces choices
    with pytest.raises(SystemExit) as ei:
        cli.parse_args(["--mode", "nope"])
    assert ei.value.code == 2


@pytest.mark.parametrize(
    "name, text",
    [
        ("inf.yaml", CASE.replace("horizonMonths: 12", "horizonMonths: .inf")),
        ("inf.json", '{"financial": {"horizonMonths": Infinity}, "options": []}'),
        ("nan.yaml", CASE.replace("amount: 1200", "amount: .nan")),
    ],
)
def test_cli_non_finite_numbers_exit_2(tmp_path, capsys, name, text):
    cfg = _write(tmp_path, name, text)
    assert cli.main(["--config", str(cfg), "--outputs-dir", str(tmp_path / "out")]) == 2
    assert "finite" in capsys.readouterr().err


def test_cli_directory_of_json_cases(tmp_path):
    in_dir = tmp_path / "cases"
    out_dir = tmp_path / "out"
    in_dir.mkdir()
    _write(in_dir, "a.json", json.dumps(yaml.safe_load(CASE)))
    _write(in_dir, "b.yml", CASE)
    _write(in_dir, "notes.txt", "not a case")
    assert cli.main(["--config", str(in_dir), "--outputs-dir", str(out_dir)]) == 0
    assert (out_dir / "a" / "summary.json").exists()
    assert (out_dir / "b" / "summary.json").exists()
    assert not (out_dir / "notes").exists()
