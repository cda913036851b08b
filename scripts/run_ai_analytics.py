#!/usr/bin/env python3
"""Run one AI analytics task against a snapshot file.

Usage:
    # Demand predictions from an exported dashboard snapshot
    python scripts/run_ai_analytics.py snapshot.json --action demand-predictions

    # Ask the assistant a question
    python scripts/run_ai_analytics.py snapshot.json --action chat --question "Which routes lack drivers?"

    # Skip the AI backend and print the rule-based fallback (reproducible with --seed)
    python scripts/run_ai_analytics.py snapshot.json --action schedule-optimizations --offline --seed 7

Environment variables:
    GROQ_API_KEY: Groq API key (without it the fallback is always used)
"""

import sys
import json
import asyncio
import argparse
import logging
import random
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from dotenv import load_dotenv
load_dotenv()

from core.config import settings
from src.analytics_bc.ai.domain.value_objects import TaskKind
from src.analytics_bc.ai.infrastructure.services.ai_analytics_service import AIAnalyticsService
from src.analytics_bc.ai.infrastructure.services.ai_request_limiter import DailyRequestLimiter
from src.analytics_bc.ai.infrastructure.services.fallback_generator import FallbackGenerator
from src.analytics_bc.ai.infrastructure.services.groq_gateway import GroqTextGateway
from src.analytics_bc.usage.domain.entities import AnalyticsSnapshot

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def build_service(offline: bool, seed) -> AIAnalyticsService:
    run_settings = settings.model_copy(update={"GROQ_API_KEY": ""}) if offline else settings
    return AIAnalyticsService(
        gateway=GroqTextGateway(run_settings),
        limiter=DailyRequestLimiter(daily_limit=run_settings.ai.AI_DAILY_REQUEST_LIMIT),
        fallback=FallbackGenerator(rng=random.Random(seed)),
    )


def main():
    parser = argparse.ArgumentParser(
        description='Run an AI analytics task over a shuttle system snapshot'
    )
    parser.add_argument('snapshot', type=Path, help='JSON file with the analytics snapshot')
    parser.add_argument(
        '--action',
        choices=[kind.value for kind in TaskKind],
        default=TaskKind.DEMAND_PREDICTIONS.value,
        help='Task to run (default: demand-predictions)'
    )
    parser.add_argument('--question', help='Question for the chat action')
    parser.add_argument(
        '--offline',
        action='store_true',
        help='Do not call the AI backend, print the rule-based fallback'
    )
    parser.add_argument('--seed', type=int, help='Seed for fallback jitter')

    args = parser.parse_args()

    if args.action == TaskKind.CHAT.value and not args.question:
        parser.error('--question is required for chat')

    try:
        data = json.loads(args.snapshot.read_text(encoding='utf-8'))
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read snapshot {args.snapshot}: {e}")
        sys.exit(1)

    snapshot = AnalyticsSnapshot.from_payload(data)
    logger.info(
        f"Loaded snapshot: {len(snapshot.routes)} routes, "
        f"{len(snapshot.boarding_records)} boarding records"
    )

    service = build_service(args.offline, args.seed)
    outcome = asyncio.run(service.run(TaskKind(args.action), snapshot, question=args.question))

    value = outcome.value
    if isinstance(value, list):
        value = [item.model_dump(by_alias=True) for item in value]

    print(json.dumps({
        "source": outcome.source.value,
        "fallbackReason": outcome.fallback_reason.value if outcome.fallback_reason else None,
        "result": value,
    }, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
