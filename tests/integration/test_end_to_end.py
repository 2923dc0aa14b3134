"""Integration: dispatcher + ledger sink + CLI, end to end."""

from __future__ import annotations

from typer.testing import CliRunner

from noncegate.cli.app import app
from noncegate.simulation import build_workload, run_simulation

runner = CliRunner()


class TestSimulation:
    def test_workload_shape(self):
        workload = build_workload("run", sources=3, per_source=4, seed=1)
        assert len(workload) == 12
        assert {t.source_id for t in workload} == {"run-wallet-0", "run-wallet-1", "run-wallet-2"}
        assert workload == build_workload("run", sources=3, per_source=4, seed=1)

    def test_workload_ids_are_unique_per_run(self):
        first = build_workload("run-a", sources=2, per_source=3, seed=9)
        second = build_workload("run-b", sources=2, per_source=3, seed=9)
        assert len({t.transaction_id for t in first}) == 6
        assert not {t.transaction_id for t in first} & {t.transaction_id for t in second}

    def test_seeded_runs_share_a_ledger_file(self, tmp_path, gate_config):
        path = tmp_path / "seeded.db"
        for _ in range(2):
            report = run_simulation(
                path, sources=2, per_source=5, confirm_every=0, seed=42, gate_config=gate_config
            )
            assert report.ok

    def test_run_confirms_everything_in_order(self, tmp_path, gate_config):
        report = run_simulation(
            tmp_path / "sim.db",
            sources=3,
            per_source=20,
            workers=4,
            confirm_every=5,
            seed=7,
            gate_config=gate_config,
        )
        assert report.ok
        assert report.submitted == 60
        assert report.confirmed == 60
        assert [s.next_expected for s in report.snapshots] == [20, 20, 20]

    def test_run_with_mining_only_at_the_end(self, tmp_path, gate_config):
        report = run_simulation(
            tmp_path / "sim.db",
            sources=2,
            per_source=10,
            workers=2,
            confirm_every=0,
            seed=3,
            gate_config=gate_config,
        )
        assert report.ok

    def test_reused_ledger_file(self, tmp_path, gate_config):
        path = tmp_path / "shared.db"
        first = run_simulation(path, sources=2, per_source=5, confirm_every=0, gate_config=gate_config)
        second = run_simulation(path, sources=2, per_source=5, confirm_every=0, gate_config=gate_config)
        assert first.ok and second.ok
        assert first.run_id != second.run_id


class TestCli:
    def test_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "simulate" in result.output
        assert "inspect" in result.output

    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        # Typer's no_args_is_help may exit with 0 or 2 depending on version
        assert result.exit_code in (0, 2)

    def test_simulate_then_inspect(self, tmp_path):
        db = str(tmp_path / "cli.db")
        result = runner.invoke(
            app,
            ["simulate", "--sources", "2", "--per-source", "8", "--seed", "4", "--ledger", db],
        )
        assert result.exit_code == 0, result.output
        assert "All 16 transactions confirmed" in result.output

        result = runner.invoke(app, ["inspect", "--ledger", db, "--verify-only"])
        assert result.exit_code == 0, result.output
        assert result.output.count("is valid") == 2

    def test_repeated_invocations_in_one_process(self, tmp_path):
        """Each invocation swaps stderr; logging must follow without crashing."""
        db = str(tmp_path / "repeat.db")
        for _ in range(3):
            result = runner.invoke(
                app, ["simulate", "--sources", "1", "--per-source", "3", "--ledger", db]
            )
            assert result.exit_code == 0, result.output
            assert result.exception is None

    def test_inspect_missing_ledger(self, tmp_path):
        result = runner.invoke(app, ["inspect", "--ledger", str(tmp_path / "none.db")])
        assert result.exit_code == 1
        assert "Ledger not found" in result.output

    def test_inspect_unknown_source(self, tmp_path):
        db = str(tmp_path / "cli.db")
        runner.invoke(app, ["simulate", "--sources", "1", "--per-source", "2", "--ledger", db])
        result = runner.invoke(app, ["inspect", "nobody", "--ledger", db])
        assert result.exit_code == 1
        assert "Source not found" in result.output
