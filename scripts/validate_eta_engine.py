#!/usr/bin/env python3
"""
Compost Engine Validation Script
Runs randomized pile scenarios through the balance, ETA and task engines and
reports any result that breaks an engine guarantee.
"""
import sys
import os
import random
import json
from datetime import datetime, timedelta
from typing import Dict, Any, List

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.schemas.compost_schemas import BalanceSeverity, MoistureCategory, TemperatureCategory
from app.services.balance_service import recommend
from app.services.compost_rules import (
    ACCEPTABLE_BROWN_GREEN,
    BROWN_GREEN_MULTIPLIER_RANGE,
    MIN_EFFECTIVE_DAYS,
    MOISTURE_MULTIPLIER_RANGE,
    TEMPERATURE_MULTIPLIER_RANGE,
    TURN_MULTIPLIER_RANGE,
)
from app.services.harvest_eta_service import MaterialSnapshot, PileSnapshot, compute_eta
from app.services.task_service import build_tasks

NOW = datetime(2025, 6, 1, 12, 0, 0)


def random_pile(pile_id: int) -> PileSnapshot:
    age_days = random.randint(0, 200)
    created_at = NOW - timedelta(days=age_days, hours=random.randint(0, 23))

    materials = []
    for _ in range(random.randint(0, 8)):
        materials.append(MaterialSnapshot(
            brown_amount=random.randint(0, 6),
            green_amount=random.randint(0, 4),
            is_shredded=random.random() < 0.3,
            created_at=created_at,
        ))

    turns = []
    if materials and age_days > 0:
        for _ in range(random.randint(0, 12)):
            turns.append(created_at + timedelta(days=random.uniform(0, age_days)))

    return PileSnapshot(
        id=pile_id,
        name=f"Pile {pile_id}",
        created_at=created_at,
        temperature=random.choice(list(TemperatureCategory)),
        moisture=random.choice(list(MoistureCategory)),
        last_logged=created_at + timedelta(days=random.uniform(0, age_days)) if age_days else created_at,
        harvested_at=NOW if random.random() < 0.1 else None,
        materials=tuple(materials),
        turns=tuple(sorted(turns)),
    )


def _in_range(value: float, bounds) -> bool:
    lo, hi = bounds
    return lo - 1e-9 <= value <= hi + 1e-9


def check_balance(browns: int, greens: int) -> List[str]:
    issues = []
    rec = recommend(browns, greens)
    lo, hi = ACCEPTABLE_BROWN_GREEN

    if not 0.0 <= rec.progress <= 1.0:
        issues.append(f"progress {rec.progress} outside [0, 1]")

    if rec.severity == BalanceSeverity.WARN_GREENS:
        if (browns + rec.required_browns) / greens < lo - 1e-9:
            issues.append("required browns do not reach the acceptable band")
        if rec.required_browns > 0 and (browns + rec.required_browns - 1) / greens >= lo:
            issues.append("required browns are not minimal")
    if rec.severity == BalanceSeverity.WARN_BROWNS and greens > 0:
        if browns / (greens + rec.required_greens) > hi + 1e-9:
            issues.append("required greens do not reach the acceptable band")
    return issues


def run_validation(num_tests: int = 500, seed: int = 42) -> Dict[str, Any]:
    random.seed(seed)

    results = []
    anomalies = []
    stats = {
        "total_tests": num_tests,
        "successful": 0,
        "failed": 0,
        "anomalies": 0,
        "min_days": None,
        "max_days": None,
        "floored": 0,
        "tasks_by_kind": {},
    }

    for i in range(num_tests):
        try:
            pile = random_pile(i + 1)
            eta = compute_eta(pile, NOW)
            issues = []

            if eta.effective_days < MIN_EFFECTIVE_DAYS:
                issues.append(f"effective days {eta.effective_days} below floor")
            if eta.effective_days == MIN_EFFECTIVE_DAYS:
                stats["floored"] += 1
            if compute_eta(pile, NOW) != eta:
                issues.append("ETA is not deterministic")
            for name, value, bounds in [
                ("m_temperature", eta.m_temperature, TEMPERATURE_MULTIPLIER_RANGE),
                ("m_moisture", eta.m_moisture, MOISTURE_MULTIPLIER_RANGE),
                ("m_brown_green", eta.m_brown_green, BROWN_GREEN_MULTIPLIER_RANGE),
                ("m_turn", eta.m_turn, TURN_MULTIPLIER_RANGE),
            ]:
                if not _in_range(value, bounds):
                    issues.append(f"{name}={value:.3f} outside {bounds}")

            issues.extend(check_balance(pile.total_brown, pile.total_green))

            tasks = build_tasks([pile], NOW, include_advisories=True)
            if pile.is_harvested and tasks:
                issues.append("harvested pile produced tasks")
            for task in tasks:
                key = task.kind.value
                stats["tasks_by_kind"][key] = stats["tasks_by_kind"].get(key, 0) + 1

            stats["min_days"] = eta.effective_days if stats["min_days"] is None else min(stats["min_days"], eta.effective_days)
            stats["max_days"] = eta.effective_days if stats["max_days"] is None else max(stats["max_days"], eta.effective_days)

            for issue in issues:
                anomalies.append({"test_id": i + 1, "issue": issue, "pile": pile.name})

            results.append({
                "test_id": i + 1,
                "temperature": pile.temperature.value,
                "moisture": pile.moisture.value,
                "browns": pile.total_brown,
                "greens": pile.total_green,
                "turns": pile.turn_count,
                "effective_days": eta.effective_days,
                "tasks": len(tasks),
            })
            stats["successful"] += 1

        except Exception as e:
            stats["failed"] += 1
            anomalies.append({
                "test_id": i + 1,
                "issue": "Engine error",
                "error": str(e),
            })

    stats["anomalies"] = len(anomalies)
    return {
        "stats": stats,
        "results": results,
        "anomalies": anomalies,
    }


def generate_report(validation: Dict) -> str:
    stats = validation["stats"]
    anomalies = validation["anomalies"]

    report = []
    report.append("=" * 80)
    report.append("VALIDATION REPORT - COMPOST ENGINES")
    report.append("=" * 80)
    report.append("")
    report.append(f"Total scenarios: {stats['total_tests']}")
    report.append(f"Successful: {stats['successful']}")
    report.append(f"Failed: {stats['failed']}")
    report.append(f"Anomalies: {stats['anomalies']}")
    report.append(f"Effective days: min={stats['min_days']}, max={stats['max_days']}, at floor={stats['floored']}")
    report.append("")
    report.append("## TASKS BY KIND")
    report.append("-" * 40)
    for kind, count in sorted(stats["tasks_by_kind"].items()):
        report.append(f"{kind:<20} {count:>6}")
    report.append("")

    if anomalies:
        report.append("## ANOMALIES")
        report.append("-" * 40)
        for i, anom in enumerate(anomalies[:15]):
            report.append(f"{i+1}. Test #{anom.get('test_id', '?')}: {anom.get('issue', 'Unknown')}")
        if len(anomalies) > 15:
            report.append(f"   ... and {len(anomalies) - 15} more")
    else:
        report.append("All engine guarantees held.")

    report.append("")
    report.append("=" * 80)
    return "\n".join(report)


if __name__ == "__main__":
    print("Running compost engine validation (500 scenarios)...")
    print("")

    validation = run_validation(num_tests=500, seed=42)
    print(generate_report(validation))

    with open("compost_validation_data.json", "w", encoding="utf-8") as f:
        json.dump(validation, f, indent=2, ensure_ascii=False)

    print("\nGenerated file: compost_validation_data.json")
