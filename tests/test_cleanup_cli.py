import io
import tempfile
from pathlib import Path

from src.cleanup import cli as cleanup_cli
from src.cleanup.orchestrator import CleanupOrchestrator, _default_prompt
from src.common.config import CONFIG_ENV_VAR
from src.kube.client import KubectlClient
from tests.fakes import FakeCluster, no_sleep, which_all


def _write_config(base: Path) -> Path:
    manifests = base / "manifests"
    manifests.mkdir()
    (manifests / "02-service.yaml.bak").write_text("original", encoding="utf-8")
    path = base / "deploy.yaml"
    path.write_text("manifest_dir: manifests\n", encoding="utf-8")
    return path


def _refuse(*args, **kwargs):
    raise AssertionError("restore must not run cleanup")


def test_unknown_flag_exits_1(capsys) -> None:
    assert cleanup_cli.main(["--bogus"]) == 1
    captured = capsys.readouterr()
    assert "--bogus" in captured.err
    assert "Usage" in captured.out + captured.err
    assert "Traceback" not in captured.err


def test_help_exits_0(capsys) -> None:
    assert cleanup_cli.main(["-h"]) == 0
    captured = capsys.readouterr()
    assert "--restore" in captured.out
    assert "--cluster" in captured.out


def test_restore_only_renames_backups_and_exits_0(monkeypatch) -> None:
    with tempfile.TemporaryDirectory() as tmp_dir:
        base = Path(tmp_dir)
        monkeypatch.setenv(CONFIG_ENV_VAR, str(_write_config(base)))
        monkeypatch.setattr(cleanup_cli, "CleanupOrchestrator", _refuse)
        assert cleanup_cli.main(["--restore"]) == 0
        assert (base / "manifests" / "02-service.yaml").read_text(encoding="utf-8") == "original"
        assert not (base / "manifests" / "02-service.yaml.bak").exists()


def test_flags_map_onto_options(monkeypatch) -> None:
    seen = {}

    class RecordingOrchestrator:
        def __init__(self, config, options) -> None:
            seen["options"] = options

        def run(self) -> None:
            seen["ran"] = True

    with tempfile.TemporaryDirectory() as tmp_dir:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(_write_config(Path(tmp_dir))))
        monkeypatch.setattr(cleanup_cli, "CleanupOrchestrator", RecordingOrchestrator)
        assert cleanup_cli.main(["-f", "-c", "-d"]) == 0

    options = seen["options"]
    assert seen["ran"]
    assert options.force and options.cluster and options.dry_run


def test_default_prompt_treats_end_of_input_as_no(monkeypatch) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    assert _default_prompt("Continue? (yes/no)") == ""


def test_end_of_input_at_confirmation_cancels_with_exit_0(monkeypatch) -> None:
    cluster = FakeCluster()
    cluster.namespaces.add("nginx-demo")

    def orchestrator(config, options):
        return CleanupOrchestrator(config, options, KubectlClient(runner=cluster), sleep=no_sleep, which=which_all)

    monkeypatch.setattr("sys.stdin", io.StringIO(""))
    with tempfile.TemporaryDirectory() as tmp_dir:
        monkeypatch.setenv(CONFIG_ENV_VAR, str(_write_config(Path(tmp_dir))))
        monkeypatch.setattr(cleanup_cli, "CleanupOrchestrator", orchestrator)
        assert cleanup_cli.main([]) == 0

    assert cluster.runner.mutating_calls() == []
    assert "nginx-demo" in cluster.namespaces


def test_invalid_config_exits_1(monkeypatch) -> None:
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / "deploy.yaml"
        path.write_text("no_such_setting: true\n", encoding="utf-8")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(path))
        assert cleanup_cli.main(["--force"]) == 1
