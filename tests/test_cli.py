# tests/test_cli.py
"""Tests for the command-line interface."""

import multiprocessing
import tempfile
from pathlib import Path

import pytest

from cardgame.accounts import AccountStore
from cardgame.cli import main
from cardgame.persistence import load_registry


@pytest.fixture
def state_dir():
    """Create a temporary state directory."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def run(state_dir):
    def _run(*argv):
        return main(["--state-dir", str(state_dir), *argv])
    return _run


@pytest.fixture
def deployed(run):
    assert run("account", "create", "alice") == 0
    assert run("account", "create", "bob") == 0
    assert run("deploy", "--as", "alice") == 0
    return run


class TestCli:
    """Test the cardgame command."""

    def test_no_command(self, run):
        assert run() == 1

    def test_requires_deploy(self, run, capsys):
        assert run("card", "1") == 1
        assert "No registry deployed" in capsys.readouterr().err

    def test_deploy_twice(self, deployed, capsys):
        assert deployed("deploy", "--as", "bob") == 1
        assert "already deployed" in capsys.readouterr().err

    def test_duplicate_account(self, deployed, capsys):
        assert deployed("account", "create", "alice") == 1
        assert "already exists" in capsys.readouterr().err

    def test_account_list(self, deployed, capsys):
        capsys.readouterr()
        assert deployed("account", "list") == 0
        out = capsys.readouterr().out
        assert "alice" in out and "bob" in out

    def test_env_state_dir(self, state_dir, monkeypatch, capsys):
        monkeypatch.setenv("CARDGAME_STATE_DIR", str(state_dir))
        assert main(["account", "create", "carol"]) == 0
        assert (state_dir / "accounts" / "accounts.json").exists()

    def test_game(self, deployed, state_dir, capsys):
        assert deployed("mint", "Dragon", "100", "50", "--as", "alice") == 0
        assert deployed("mint", "Knight", "80", "60", "--as", "alice") == 0
        assert (state_dir / "registry.json").exists()

        capsys.readouterr()
        assert deployed("card", "1") == 0
        out = capsys.readouterr().out
        assert "Dragon" in out and "150" in out

        assert deployed("play", "1", "2") == 0
        assert "Winner: token 1" in capsys.readouterr().out

        assert deployed("mint", "Goblin", "1", "1", "--as", "bob") == 1
        assert "NotOwner" in capsys.readouterr().err

        assert deployed("transfer", "bob", "1", "--as", "alice") == 0
        capsys.readouterr()
        assert deployed("owner", "1") == 0
        assert "bob" in capsys.readouterr().out

        assert deployed("transfer", "alice", "1", "--as", "alice") == 1
        assert "NotApproved" in capsys.readouterr().err

        assert deployed("transfer", "alice", "1", "--as", "bob") == 0

    def test_missing_values_are_not_errors(self, deployed, capsys):
        capsys.readouterr()
        assert deployed("card", "9") == 0
        assert "not found" in capsys.readouterr().out
        assert deployed("owner", "9") == 0
        assert "not found" in capsys.readouterr().out
        assert deployed("play", "1", "9") == 0
        assert "tie / no result" in capsys.readouterr().out

    def test_transfer_unknown_token(self, deployed, capsys):
        assert deployed("transfer", "bob", "3", "--as", "alice") == 1
        assert "TokenNotFound" in capsys.readouterr().err

    def test_out_of_range_stats(self, deployed, capsys):
        assert deployed("mint", "Huge", "4294967296", "0", "--as", "alice") == 1
        assert "uint32" in capsys.readouterr().err

    def test_unknown_user(self, deployed, capsys):
        assert deployed("mint", "Dragon", "1", "1", "--as", "mallory") == 1
        assert "No such account" in capsys.readouterr().err


def _mint_in_process(state_dir: str, index: int) -> int:
    return main(["--state-dir", state_dir, "mint", f"Card {index}", "1", "1", "--as", "alice"])


def _create_account_in_process(state_dir: str, index: int) -> int:
    return main(["--state-dir", state_dir, "account", "create", f"player{index}"])


class TestCliConcurrency:
    """Test that separate processes sharing a state directory serialize."""

    def test_parallel_mints_issue_unique_ids(self, deployed, state_dir):
        ctx = multiprocessing.get_context("spawn")
        with ctx.Pool(8) as pool:
            codes = pool.starmap(_mint_in_process, [(str(state_dir), i) for i in range(8)])

        assert codes == [0] * 8
        registry = load_registry(state_dir / "registry.json")
        assert registry.next_token_id == 9
        assert len(registry) == 8
        names = {registry.get_card(token_id).name for token_id in range(1, 9)}
        assert names == {f"Card {i}" for i in range(8)}

    def test_parallel_account_creation_keeps_all(self, state_dir):
        ctx = multiprocessing.get_context("spawn")
        with ctx.Pool(4) as pool:
            codes = pool.starmap(_create_account_in_process, [(str(state_dir), i) for i in range(4)])

        assert codes == [0] * 4
        accounts = AccountStore(state_dir / "accounts")
        assert sorted(a.username for a in accounts.list()) == [f"player{i}" for i in range(4)]
