# ==============================================
# Tests for the CLI
# ==============================================

import json
import logging

import pytest

from dexusage import cli
from dexusage.config import AppConfig
from dexusage.persistence.codec import VERSION_HEADER


@pytest.fixture(autouse=True)
def default_config(monkeypatch):
    """Isolate from the environment and reset handlers installed by main()."""
    monkeypatch.setattr(cli, "get_config", lambda: AppConfig())
    yield
    package_logger = logging.getLogger("dexusage")
    package_logger.handlers = []
    package_logger.setLevel(logging.NOTSET)


@pytest.fixture
def usage_path(tmp_path):
    return tmp_path / "package-dex-usage.list"


def run(usage_path, *args):
    return cli.main(["--file", str(usage_path), *args])


class TestCli:

    def test_record_writes_file(self, usage_path, capsys):
        code = run(usage_path, "record", "com.example.app", "/data/a.dex",
                   "--user", "0", "--isa", "arm64")

        assert code == 0
        assert "recorded new usage" in capsys.readouterr().out
        assert usage_path.read_text() == (
            f"{VERSION_HEADER}1\ncom.example.app,0\n#/data/a.dex\n0,0,arm64\n"
        )

    def test_record_twice_reports_known(self, usage_path, capsys):
        run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "arm64")
        capsys.readouterr()

        run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "arm64")

        assert "usage already known" in capsys.readouterr().out

    def test_record_owner_mismatch_fails(self, usage_path, capsys):
        run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "arm64")

        code = run(usage_path, "record", "pkg", "/data/a.dex", "--user", "10", "--isa", "arm64")

        assert code == 1
        assert "ownerUserId" in capsys.readouterr().err

    def test_record_unsupported_isa_fails(self, usage_path, capsys):
        code = run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "x86")

        assert code == 1
        assert "unsupported" in capsys.readouterr().err
        assert not usage_path.exists()

    def test_show_and_dump(self, usage_path, capsys):
        run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "arm",
            "--used-by-other-apps")
        capsys.readouterr()

        assert run(usage_path, "show") == 0
        assert capsys.readouterr().out == "pkg\n"

        assert run(usage_path, "show", "pkg", "--json") == 0
        shown = json.loads(capsys.readouterr().out)
        assert shown["pkg"]["dex_files"]["/data/a.dex"] == {
            "owner_user_id": 0,
            "is_used_by_other_apps": True,
            "loader_isas": ["arm"],
        }

        assert run(usage_path, "dump") == 0
        assert capsys.readouterr().out == usage_path.read_text()

    def test_show_unknown_package(self, usage_path, capsys):
        assert run(usage_path, "show", "com.missing") == 1

    def test_sync(self, usage_path, capsys):
        run(usage_path, "record", "keep", "/data/k.dex", "--user", "0", "--isa", "arm64")
        run(usage_path, "record", "gone", "/data/g.dex", "--user", "0", "--isa", "arm64")
        capsys.readouterr()

        assert run(usage_path, "sync", "--package", "keep=0,10") == 0

        assert "2 -> 1 packages" in capsys.readouterr().out
        assert "gone" not in usage_path.read_text()

    def test_sync_rejects_bad_argument(self, usage_path):
        with pytest.raises(SystemExit) as exc_info:
            run(usage_path, "sync", "--package", "keep=root")
        assert exc_info.value.code == 2

    def test_reset_requires_confirm(self, usage_path):
        run(usage_path, "record", "pkg", "/data/a.dex", "--user", "0", "--isa", "arm64")

        assert run(usage_path, "reset") == 1
        assert run(usage_path, "reset", "--confirm") == 0
        assert usage_path.read_text() == f"{VERSION_HEADER}1\n"
