import json
import os
import subprocess
import sys


def run_cli(env: dict[str, str] | None = None, args: list[str] | None = None, cwd=None) -> subprocess.CompletedProcess:
    cmd = [sys.executable, "-m", "compdb.cli"]
    if args:
        cmd.extend(args)
    env_vars = os.environ.copy()
    for k in ("COMPDB_GENERATE", "COMPDB_DEBUG", "COMPDB_LINK_TO", "COMPDB_SOURCE_ROOT"):
        env_vars.pop(k, None)
    if env:
        env_vars.update(env)
    return subprocess.run(cmd, capture_output=True, text=True, env=env_vars, cwd=cwd)


def _write_graph(tmp_path):
    p = tmp_path / "graph.json"
    p.write_text(
        json.dumps(
            {
                "variables": {"common": "-DANDROID"},
                "modules": [
                    {"name": "libx", "flags": {"global": ["${common}"]}, "compiled": {"srcs": ["x.c", "y.xyz"]}},
                ],
            }
        ),
        encoding="utf-8",
    )
    return p


def test_cli_is_noop_when_not_enabled(tmp_path):
    proc = run_cli(args=["--graph", str(_write_graph(tmp_path))])
    assert proc.returncode == 0
    payload = json.loads(proc.stdout.strip())
    assert payload == {"ok": True, "stage": "done_disabled", "enabled": False}
    assert not (tmp_path / "out").exists()


def test_cli_generates_database(tmp_path):
    proc = run_cli(env={"COMPDB_GENERATE": "1"}, args=["--graph", str(_write_graph(tmp_path))])
    assert proc.returncode == 0, proc.stderr
    payload = json.loads(proc.stdout.strip())
    assert payload["ok"] is True
    assert payload["entries"] == 2

    data = json.loads((tmp_path / "out/development/ide/compdb/compile_commands.json").read_text(encoding="utf-8"))
    assert [e["file"] for e in data] == ["x.c", "y.xyz"]
    assert data[0]["arguments"] == ["/bin/false", "-DANDROID", "x.c"]
    # unknown extension is logged, not fatal
    assert "Unknown file extension" in proc.stderr


def test_cli_reads_dotenv(tmp_path):
    (tmp_path / ".env").write_text('export COMPDB_GENERATE="yes"  # turn it on\n', encoding="utf-8")
    proc = run_cli(args=["--dotenv", "--graph", str(_write_graph(tmp_path))], cwd=str(tmp_path))
    assert proc.returncode == 0, proc.stderr
    assert json.loads(proc.stdout.strip())["stage"] == "done"


def test_cli_reports_stage_on_failure(tmp_path):
    proc = run_cli(env={"COMPDB_GENERATE": "1"}, args=["--graph", str(tmp_path / "missing.json")])
    assert proc.returncode == 1
    payload = json.loads(proc.stdout.strip())
    assert payload["ok"] is False
    assert payload["stage"] == "load_graph"
    assert payload["error_code"] == "COMPDB_FAILED_LOAD_GRAPH"
    assert "missing.json" in payload["error_message"]
