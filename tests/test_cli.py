# tests/test_cli.py
import json
import logging
import os
import shutil
import tempfile

import pytest

from slashkeeper.cli.cli import CLI

class TestCLI:
    @pytest.fixture
    def workdir(self):
        tmp_dir = tempfile.mkdtemp()
        yield tmp_dir
        shutil.rmtree(tmp_dir)

    def run(self, workdir, *args):
        base = [
            "--config", os.path.join(workdir, "node.yaml"),
            "--db", os.path.join(workdir, "slashing.db"),
        ]
        return CLI().main(base + list(args))

    def genesis(self, workdir) -> str:
        path = os.path.join(workdir, "genesis.json")
        state = {
            "params": {"signed_blocks_window": 20, "min_signed_per_window": "0.5"},
            "signing_infos": [
                {"address": "val1", "start_height": 5, "missed_blocks_counter": 1}
            ],
            "missed_blocks": [{"address": "val1", "missed": [7]}]
        }
        with open(path, "w") as f:
            json.dump(state, f)
        return path

    def test_no_command_prints_help(self, workdir, capsys):
        assert CLI().main([]) == 1
        assert "usage" in capsys.readouterr().out

    def test_import_then_query(self, workdir, capsys):
        assert self.run(workdir, "import-genesis", self.genesis(workdir)) == 0
        capsys.readouterr()

        assert self.run(workdir, "signing-info", "val1") == 0
        info = json.loads(capsys.readouterr().out)
        assert info["start_height"] == 5
        assert info["missed_blocks_counter"] == 1

        assert self.run(workdir, "params") == 0
        assert json.loads(capsys.readouterr().out)["signed_blocks_window"] == 20

    def test_export_genesis(self, workdir, capsys):
        self.run(workdir, "import-genesis", self.genesis(workdir))
        output = os.path.join(workdir, "exported.json")

        assert self.run(workdir, "export-genesis", output) == 0
        with open(output) as f:
            state = json.load(f)
        assert state["missed_blocks"] == [{"address": "val1", "missed": [7]}]

    def test_bad_genesis_reports_error(self, workdir, capsys):
        path = os.path.join(workdir, "bad.json")
        with open(path, "w") as f:
            json.dump({"params": {"signed_blocks_window": -5}}, f)

        assert self.run(workdir, "import-genesis", path) == 1
        assert "Error" in capsys.readouterr().err

    def test_simulate_slashes_absent_validator(self, workdir, capsys, monkeypatch):
        self.run(workdir, "import-genesis", self.genesis(workdir))
        capsys.readouterr()
        monkeypatch.chdir(workdir)
        package_logger = logging.getLogger("slashkeeper")
        handlers_before = list(package_logger.handlers)

        try:
            # window 20, at most 10 misses: the absent validator goes down at height 21
            assert self.run(workdir, "simulate", "--validators", "3",
                            "--blocks", "60", "--miss-rate", "1.0") == 0
        finally:
            for handler in package_logger.handlers[:]:
                if handler not in handlers_before:
                    package_logger.removeHandler(handler)
                    handler.close()

        out = capsys.readouterr().out
        assert "Processed 60 blocks, 1 slash event(s)" in out
        assert os.path.isdir(os.path.join(workdir, "logs"))
