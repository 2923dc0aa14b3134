"""Concurrent end-to-end simulation: shuffled submissions through the gate.

Generates ``per_source`` transactions for each of ``sources`` wallets,
shuffles them, schedules them from a thread pool into a ``LedgerSink``,
and mines blocks until every pushed transaction is confirmed.  Used by
``noncegate simulate`` and by the integration tests.
"""

from __future__ import annotations

import logging
import random
import uuid
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from noncegate.config import GateConfig, config
from noncegate.core.dispatcher import OrderedDispatcher, SequencingError
from noncegate.models.items import Transaction
from noncegate.models.sources import SourceSnapshot
from noncegate.sinks.ledger import LedgerIntegrityError, LedgerSink

logger = logging.getLogger(__name__)


class SimulationReport(BaseModel):
    """Outcome of one simulation run."""

    model_config = ConfigDict(frozen=True)

    run_id: str
    submitted: int
    confirmed: int
    rejected: int = 0
    sink_failures: int = 0
    broken_chains: list[str] = Field(default_factory=list)
    snapshots: list[SourceSnapshot] = Field(default_factory=list)

    @property
    def pending(self) -> int:
        return sum(s.pending_count for s in self.snapshots)

    @property
    def ok(self) -> bool:
        return (
            self.confirmed == self.submitted
            and self.pending == 0
            and self.rejected == 0
            and self.sink_failures == 0
            and not self.broken_chains
        )


def build_workload(
    run_id: str, sources: int, per_source: int, *, seed: int | None = None
) -> list[Transaction]:
    """Return ``sources * per_source`` transactions in shuffled order.

    Transaction ids are derived from *run_id*, so a given run id and *seed*
    always produce the same workload.
    """
    rng = random.Random(seed)
    workload = [
        Transaction(
            transaction_id=str(uuid.uuid5(uuid.NAMESPACE_URL, f"noncegate:{run_id}/{s}/{n}")),
            source_id=f"{run_id}-wallet-{s}",
            nonce=n,
        )
        for s in range(sources)
        for n in range(per_source)
    ]
    rng.shuffle(workload)
    return workload


def run_simulation(
    ledger_path: Path | str,
    *,
    sources: int = 4,
    per_source: int = 25,
    workers: int | None = None,
    confirm_every: int = 10,
    seed: int | None = None,
    gate_config: GateConfig | None = None,
) -> SimulationReport:
    """Run the simulation and return a report.

    Every ``confirm_every`` submissions the main thread mines one block
    while the pool keeps scheduling, so confirmations interleave with
    arrivals.
    """
    cfg = gate_config or config
    run_id = f"sim-{uuid.uuid4().hex[:8]}"
    ledger = LedgerSink(ledger_path)
    dispatcher = OrderedDispatcher(ledger, gate_config=cfg)
    confirmed: list[Transaction] = []

    def _on_confirm(tx: Transaction) -> None:
        # The ledger file may hold leftovers of earlier runs.
        if tx.source_id in dispatcher:
            confirmed.append(tx)
            dispatcher.confirm(tx)

    ledger.on_confirm = _on_confirm

    workload = build_workload(run_id, sources, per_source, seed=seed)
    logger.info(
        "Simulation %s: %d transactions across %d sources",
        run_id,
        len(workload),
        sources,
    )

    rejected = 0
    sink_failures = 0
    with ThreadPoolExecutor(max_workers=workers or cfg.simulation_workers) as pool:
        futures = []
        for i, tx in enumerate(workload, start=1):
            futures.append(pool.submit(dispatcher.schedule, tx))
            if confirm_every and i % confirm_every == 0:
                ledger.mine()

        for future in as_completed(futures):
            exc = future.exception()
            if isinstance(exc, SequencingError):
                rejected += 1
                logger.error("Simulation %s: rejected submission: %s", run_id, exc)
            elif exc is not None:
                sink_failures += 1
                logger.error("Simulation %s: sink failure: %s", run_id, exc)

    while ledger.pending_count():
        ledger.mine()

    broken: list[str] = []
    for source_id in dispatcher.source_ids:
        try:
            ledger.verify_chain(source_id)
        except LedgerIntegrityError as exc:
            logger.error("Simulation %s: %s", run_id, exc)
            broken.append(source_id)

    return SimulationReport(
        run_id=run_id,
        submitted=len(workload),
        confirmed=len(confirmed),
        rejected=rejected,
        sink_failures=sink_failures,
        broken_chains=broken,
        snapshots=dispatcher.snapshots(),
    )
