"""
Ingestion module for synchronizing eCFR metrics.

Key Components:
    - SyncOrchestrator: Runs one idempotent synchronization pass
    - SyncReport: Summary of what a pass did
    - run_sync_pass: Build the default client and store, then run a pass

Example Usage:
    import asyncio
    from ecfranalyzer.ingestion import run_sync_pass

    report = asyncio.run(run_sync_pass())
    print(report.to_dict())
"""

from .sync import SyncOrchestrator, SyncReport, SyncState, TitleResult, run_sync_pass

__all__ = ["SyncOrchestrator", "SyncReport", "SyncState", "TitleResult", "run_sync_pass"]
