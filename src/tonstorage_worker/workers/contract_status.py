"""Drain the contract watch queue and forward closures of inactive contracts."""

from __future__ import annotations

import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass

from tonstorage_worker.broker.amqp import BrokerSession, QueueMessage
from tonstorage_worker.broker.events import (
    EventDecodeError,
    QueueEvent,
    close_contract,
    contract_address,
)
from tonstorage_worker.chain.client import ChainCallResult, ContractStatusReader

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ContractStatusSummary:
    """Counters for one drain of the contract queue."""

    snapshot: int = 0
    processed: int = 0
    closed: int = 0
    still_active: int = 0
    malformed: int = 0


def closure_event_for(address: str, status: ChainCallResult) -> QueueEvent | None:
    """CloseContract event unless the chain confirms the contract is active."""

    if status.confirms_active:
        return None
    return close_contract(address)


class ContractStatusWorker:
    """Checks each queued contract once per run.

    The run handles exactly as many messages as the queue held when it
    started. Messages published during the run wait for the next run.
    """

    def __init__(
        self,
        *,
        chain: ContractStatusReader,
        open_session: Callable[[], AbstractContextManager[BrokerSession]],
        source_queue: str,
        target_queue: str,
    ) -> None:
        self.chain = chain
        self.open_session = open_session
        self.source_queue = source_queue
        self.target_queue = target_queue

    def run(self) -> ContractStatusSummary:
        summary = ContractStatusSummary()
        with self.open_session() as session:
            summary.snapshot = session.declare(self.source_queue)
            if summary.snapshot == 0:
                logger.info("Queue %s is empty", self.source_queue)
                return summary
            session.declare(self.target_queue)

            while summary.processed < summary.snapshot:
                message = session.get(self.source_queue)
                if message is None:
                    logger.info(
                        "Queue %s drained after %d of %d messages",
                        self.source_queue,
                        summary.processed,
                        summary.snapshot,
                    )
                    break
                self._handle(session, message, summary)
                summary.processed += 1

        logger.info(
            "Contract status run: processed=%d closed=%d active=%d malformed=%d",
            summary.processed,
            summary.closed,
            summary.still_active,
            summary.malformed,
        )
        return summary

    def _handle(
        self,
        session: BrokerSession,
        message: QueueMessage,
        summary: ContractStatusSummary,
    ) -> None:
        try:
            address = contract_address(QueueEvent.decode(message.body))
        except EventDecodeError as error:
            logger.warning("Dropping malformed contract message: %s", error)
            session.ack(message)
            summary.malformed += 1
            return

        status = self.chain.is_active(address)
        event = closure_event_for(address, status)
        if event is None:
            # Original body back at the tail; checked again next run.
            session.publish_body(self.source_queue, message.body)
            session.ack(message)
            summary.still_active += 1
            return

        session.publish(self.target_queue, event)
        session.ack(message)
        summary.closed += 1
        logger.info(
            "Contract %s is no longer active (exit_code=%s, error=%s)",
            address,
            status.exit_code,
            status.error,
        )
