"""Worker for the durable batch recall workflow.

Connects to Temporal (Cloud or a local dev server), listens on the recall
task queue and executes BatchRecallWorkflow and its activities.

Run with --queue <name> to poll a different task queue.
"""

import argparse
import asyncio
import sys
from pathlib import Path

from temporalio.worker import Worker

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporal_client import get_temporal_client
from activities.recall import build_recall_activities
from core.config import get_settings
from core.observability.logging import configure_logging, get_logger, with_correlation
from workflows.recall_workflow import BatchRecallWorkflow


logger = get_logger("workers.worker")


async def run_worker(queue: str = None):
    """Start a worker listening on the recall task queue.

    Args:
        queue: Task queue to poll (defaults to TEMPORAL_TASK_QUEUE)

    Raises:
        Exception: If connection to Temporal fails
    """
    settings = get_settings()
    task_queue = queue or settings.temporal_task_queue
    client = None

    try:
        client = await get_temporal_client(settings)
        logger.info(f"Connected to Temporal: {client.namespace}")

        recall_activities = await build_recall_activities(settings)
        logger.info(f"Loaded {len(recall_activities.engine.collection)} batches")

        worker = Worker(
            client,
            task_queue=task_queue,
            workflows=[BatchRecallWorkflow],
            activities=recall_activities.all(),
        )

        with with_correlation(task_queue=task_queue):
            logger.info(f"Worker created for queue '{task_queue}'")
            logger.info("Worker running... (Ctrl+C to stop)")
            await worker.run()

    except KeyboardInterrupt:
        logger.info("Worker interrupted by user")
    except Exception as e:
        logger.error(f"Worker error: {e}", exc_info=True)
        raise


def main():
    """Entry point for worker with CLI args."""
    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    parser = argparse.ArgumentParser(description="AyurTrace Recall Temporal Worker")
    parser.add_argument(
        "--queue", "-q",
        default=settings.temporal_task_queue,
        help=f"Task queue to poll (default: {settings.temporal_task_queue})"
    )

    args = parser.parse_args()
    asyncio.run(run_worker(queue=args.queue))


if __name__ == "__main__":
    main()
