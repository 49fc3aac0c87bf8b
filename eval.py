#!/usr/bin/env python
"""
Evaluation script for the Scan Title Pipeline.

Summarizes filed results and compares extracted titles against expected
ones.

Usage:
    python eval.py --input <filing_dir>/processed.json [--expected <titles.json>]
    python eval.py --input <filing_dir>/results.json --report <report.json>

The expected file maps source names to titles:
    {"scan_0042.pdf": "Invoice 2024-113 Example GmbH", ...}
"""

import argparse
import json
import logging
import re
from collections import Counter
from dataclasses import dataclass, asdict, field
from pathlib import Path
from typing import List, Optional, Dict, Any
import sys

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

GOOD_ENOUGH = 70.0


@dataclass
class EvaluationMetrics:
    """Evaluation metrics over a batch of processed scans."""
    documents_total: int = 0
    empty_titles: int = 0
    confidence_avg: float = 0.0
    good_enough_rate: float = 0.0
    angle_distribution: Dict[str, int] = field(default_factory=dict)

    # Accuracy (if expected titles provided)
    compared: int = 0
    exact_match_rate: Optional[float] = None
    normalized_match_rate: Optional[float] = None
    token_overlap_avg: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def load_document(json_path: Path) -> Any:
    """Load a JSON file."""
    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


def normalize_records(data: Any) -> List[Dict[str, Any]]:
    """
    Flatten manifest records and CLI result envelopes to
    {source, title, confidence, angle} dicts.
    """
    if isinstance(data, dict):
        data = [data]

    records = []
    for item in data:
        if "result" in item:
            result = item["result"]
            records.append({
                "source": item.get("source", ""),
                "title": result.get("title", ""),
                "confidence": result.get("confidence", 0.0),
                "angle": result.get("angle", 0),
            })
        else:
            records.append({
                "source": item.get("source", ""),
                "title": item.get("title", ""),
                "confidence": item.get("confidence", 0.0),
                "angle": item.get("angle", 0),
            })
    return records


def normalize_title(title: str) -> str:
    """Lowercase, drop punctuation, collapse whitespace."""
    title = re.sub(r"[^\w\s]", " ", title.lower())
    return " ".join(title.split())


def compare_text(expected: str, actual: str) -> float:
    """
    Compare expected and actual text, return similarity score.
    Uses simple word-level Jaccard similarity.
    """
    if not expected or not actual:
        return 0.0

    expected_words = set(normalize_title(expected).split())
    actual_words = set(normalize_title(actual).split())

    if not expected_words:
        return 0.0

    intersection = expected_words & actual_words
    union = expected_words | actual_words

    return len(intersection) / len(union) if union else 0.0


def evaluate_records(
    records: List[Dict[str, Any]],
    expected: Optional[Dict[str, str]] = None
) -> EvaluationMetrics:
    """Evaluate a batch of processed scans."""
    metrics = EvaluationMetrics()
    metrics.documents_total = len(records)
    if not records:
        return metrics

    confidences = [float(r["confidence"]) for r in records]
    metrics.confidence_avg = sum(confidences) / len(confidences)
    metrics.good_enough_rate = sum(1 for c in confidences if c > GOOD_ENOUGH) / len(confidences)
    metrics.empty_titles = sum(1 for r in records if not r["title"].strip())
    metrics.angle_distribution = {
        str(angle): count
        for angle, count in sorted(Counter(r["angle"] for r in records).items())
    }

    if expected:
        compared = [r for r in records if r["source"] in expected]
        metrics.compared = len(compared)
        if compared:
            exact = sum(1 for r in compared if r["title"].strip() == expected[r["source"]].strip())
            normalized = sum(
                1 for r in compared
                if normalize_title(r["title"]) == normalize_title(expected[r["source"]])
            )
            overlap = [compare_text(expected[r["source"]], r["title"]) for r in compared]
            metrics.exact_match_rate = exact / len(compared)
            metrics.normalized_match_rate = normalized / len(compared)
            metrics.token_overlap_avg = sum(overlap) / len(overlap)

    return metrics


def print_metrics(metrics: EvaluationMetrics, name: str = "Scans"):
    """Print metrics in a formatted way."""
    print(f"\n{'='*60}")
    print(f"Evaluation Results: {name}")
    print('='*60)

    print("\n📊 Overall:")
    print(f"  Documents: {metrics.documents_total}")
    print(f"  Empty titles: {metrics.empty_titles}")
    print(f"  Average Confidence: {metrics.confidence_avg:.1f}")
    print(f"  Good enough (>{GOOD_ENOUGH:.0f}): {metrics.good_enough_rate:.1%}")

    print("\n🔄 Rotations:")
    for angle, count in metrics.angle_distribution.items():
        print(f"  {angle}°: {count}")

    if metrics.exact_match_rate is not None:
        print(f"\n🎯 Accuracy (vs expected, {metrics.compared} compared):")
        print(f"  Exact match: {metrics.exact_match_rate:.1%}")
        print(f"  Normalized match: {metrics.normalized_match_rate:.1%}")
        print(f"  Token overlap: {metrics.token_overlap_avg:.1%}")

    print('='*60)


def main():
    parser = argparse.ArgumentParser(
        description="Evaluate Scan Title Pipeline outputs"
    )

    parser.add_argument(
        "--input", "-i",
        type=Path,
        required=True,
        help="processed.json manifest or results.json from the CLI"
    )

    parser.add_argument(
        "--expected", "-e",
        type=Path,
        help="JSON object mapping source names to expected titles"
    )

    parser.add_argument(
        "--report", "-r",
        type=Path,
        help="Output path for evaluation report JSON"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress printed output"
    )

    args = parser.parse_args()

    if not args.input.exists():
        logger.error(f"Input file not found: {args.input}")
        return 1

    records = normalize_records(load_document(args.input))

    expected = None
    if args.expected:
        if not args.expected.exists():
            logger.error(f"Expected titles not found: {args.expected}")
            return 1
        expected = load_document(args.expected)

    metrics = evaluate_records(records, expected)

    if not args.quiet:
        print_metrics(metrics, args.input.name)

    if args.report:
        report = {
            "summary": metrics.to_dict(),
            "documents": records,
        }
        with open(args.report, 'w', encoding='utf-8') as f:
            json.dump(report, f, indent=2, ensure_ascii=False)

        logger.info(f"Report saved to: {args.report}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
