"""Prompt templates for AI-assisted drafting.

Each builder fills a template from batch or workflow context. The returned
draft is never parsed; it is shown to the operator verbatim.
"""

import json
from typing import Sequence

from core.models.alerts import Alert
from core.models.batch import Batch


RECALL_COMMUNICATION_TEMPLATE = """\
You are a regulatory officer for the AYUSH Ministry in India.
Your task is to draft a formal and urgent product recall notification for an Ayurvedic supply chain.
The communication must be bilingual (English and Hindi).

Use the following details:
- Batch ID: {batch_id}
- Product: {plant_type}
- Farmer: {farmer_name}
- Origin: {state}
- Ledger Reference: {ledger_id}
- Reason for Recall: {reason}

Generate the complete, formatted recall notification.
"""

RULE_DIRECTIVE_TEMPLATE = """\
You are a regulatory officer for the AYUSH Ministry in India.
Draft an official directive for a new compliance rule for the Ayurvedic supply chain.
The topic of the rule is: "{topic}".

The directive should be formal, clear, and include:
1. A directive number (e.g., AYUSH Ministry Directive - YYYY/MM-A).
2. An effective date (Immediately).
3. The subject of the rule.
4. The body of the rule, clearly stating the new mandate and a 30-day adoption window.
5. An enforcement section mentioning audits of ledger records and penalties for non-compliance, including suspension of licenses.
6. A closing signature line for "AYUSH Regulator".

Do not add any explanations or markdown formatting around the directive.
"""

UPGRADE_PLAN_TEMPLATE = """\
You are a senior blockchain engineer creating a technical plan for a smart contract upgrade on the AyurTrace network.
The reason for the upgrade is: "{reason}".

Generate a high-level technical plan with the following sections:
1. Key Steps: the process from code freeze to deployment and verification.
2. Potential Risks: issues such as data migration errors, replay attacks or downtime, with a mitigation for each.
3. Testing Strategy: unit tests, integration tests on a testnet, and a third-party security audit.

Keep the plan clear, concise and technically sound.
"""

INSPECTION_NOTES_TEMPLATE = """\
You are an AI assistant for a regulator in the AyurTrace system, ensuring the integrity of the Ayurvedic supply chain.
Generate concise and actionable inspection notes based on the batch data and recent system-wide alerts below,
highlighting potential risks or specific areas for verification.

Batch Information:
- ID: {batch_id}
- Plant Type: {plant_type}
- Farmer: {farmer_name}
- Location: {state}
- Full History: {history}

Recent System-Wide Alerts (Top {alert_count}):
{alerts}

Provide a single, focused paragraph of inspection notes.
"""


def recall_communication_prompt(batch: Batch, reason: str) -> str:
    return RECALL_COMMUNICATION_TEMPLATE.format(
        batch_id=batch.id,
        plant_type=batch.plant_type,
        farmer_name=batch.farmer_name,
        state=batch.location.state,
        ledger_id=batch.ledger_id or "n/a",
        reason=reason,
    )


def rule_directive_prompt(topic: str) -> str:
    return RULE_DIRECTIVE_TEMPLATE.format(topic=topic)


def upgrade_plan_prompt(reason: str) -> str:
    return UPGRADE_PLAN_TEMPLATE.format(reason=reason)


def inspection_notes_prompt(batch: Batch, alerts: Sequence[Alert]) -> str:
    history = [event.model_dump(mode="json", exclude_none=True) for event in batch.history]
    alert_data = [
        {"title": a.title, "description": a.description, "type": a.type.value}
        for a in alerts
    ]
    return INSPECTION_NOTES_TEMPLATE.format(
        batch_id=batch.id,
        plant_type=batch.plant_type,
        farmer_name=batch.farmer_name,
        state=batch.location.state,
        history=json.dumps(history, indent=2),
        alert_count=len(alert_data),
        alerts=json.dumps(alert_data, indent=2) if alert_data else "None",
    )
