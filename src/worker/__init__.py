"""Background workers for the invoicing service"""
from .collection_scheduler import CollectionSchedulerWorker

__all__ = ["CollectionSchedulerWorker"]
