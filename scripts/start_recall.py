"""Start a batch recall workflow on Temporal.

This script starts a BatchRecallWorkflow, submits the recall reason and
prints the drafted communication. With --confirm it also approves the
communication and waits for the recall to complete; without it the
workflow is left waiting for approval.
"""

import asyncio
import sys
from pathlib import Path

# Add repo root to path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from temporalio.client import WorkflowUpdateFailedError

from temporal_client import get_temporal_client
from core.config import get_settings
from core.observability.logging import configure_logging, get_logger
from core.workflow.recall import new_workflow_id
from workflows.recall_workflow import BatchRecallWorkflow, BatchRecallInput


logger = get_logger("scripts.start_recall")


async def start_recall_workflow(batch_id: str, reason: str, confirm: bool = False):
    """Start a recall workflow and drive it through the draft (and optionally confirm) step.

    Args:
        batch_id: Batch to recall, e.g. BRA-RJ-003
        reason: Justification for the recall
        confirm: Approve the drafted communication and wait for the result

    Returns:
        dict: Workflow status (draft only) or the workflow result
    """
    settings = get_settings()
    workflow_id = new_workflow_id(batch_id)

    logger.info(f"Starting recall workflow {workflow_id} for {batch_id}...")

    try:
        client = await get_temporal_client(settings)
        logger.info(f"Connected to Temporal: {client.namespace}")

        handle = await client.start_workflow(
            BatchRecallWorkflow.run,
            BatchRecallInput(batch_id=batch_id),
            task_queue=settings.temporal_task_queue,
            id=workflow_id,
        )
        logger.info(f"Workflow started: {handle.id}")

        logger.info("Submitting reason, waiting for the drafted communication...")
        try:
            status = await handle.execute_update(BatchRecallWorkflow.submit_reason, reason)
        except WorkflowUpdateFailedError as e:
            logger.error(f"Draft failed: {e.cause}")
            return await handle.query(BatchRecallWorkflow.status)

        print("\n=== RECALL COMMUNICATION ===")
        print(status.get("communication"))
        print("============================\n")

        if not confirm:
            logger.info(f"Workflow {handle.id} is waiting for approval (update 'confirm' or 'cancel')")
            return status

        await handle.execute_update(BatchRecallWorkflow.confirm)
        result = await handle.result()
        logger.info(f"✓ Workflow completed: {result.step}")
        return result.__dict__

    except Exception as e:
        logger.error(f"Workflow failed: {e}", exc_info=True)
        raise


def main():
    """Entry point."""
    import argparse

    settings = get_settings()
    configure_logging(level=settings.log_level, json_format=settings.log_json)

    parser = argparse.ArgumentParser(description="Start a batch recall workflow")
    parser.add_argument("batch_id", help="Batch to recall, e.g. BRA-RJ-003")
    parser.add_argument("--reason", "-r", required=True, help="Reason for the recall")
    parser.add_argument(
        "--confirm",
        action="store_true",
        help="Approve the drafted communication and wait for completion",
    )
    args = parser.parse_args()

    try:
        result = asyncio.run(start_recall_workflow(
            batch_id=args.batch_id,
            reason=args.reason,
            confirm=args.confirm,
        ))
        print("\n=== WORKFLOW RESULT ===")
        for key, value in result.items():
            print(f"  {key}: {value}")
        print("=======================\n")
        return 0
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
