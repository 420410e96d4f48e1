"""Blockchain reads for storage contracts."""

from tonstorage_worker.chain.client import ChainCallResult, ContractStatusReader, ToncenterClient

__all__ = ["ChainCallResult", "ContractStatusReader", "ToncenterClient"]
