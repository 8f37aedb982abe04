"""Completion verdict for a single item."""

from __future__ import annotations

from typing import Iterable, List

from models import Evaluation, ItemStatus, SubResourceKind, SubResourceOutcome


_REASON_LABELS = {
    SubResourceKind.TEMPLATE: "Templates",
    SubResourceKind.OFFICIAL_ANSWER: "Official solution",
    SubResourceKind.COMMUNITY_ANSWER: "Community solutions",
}


def evaluate(
    description_ok: bool,
    templates: SubResourceOutcome,
    official_answer: SubResourceOutcome,
    community_answer: SubResourceOutcome,
    requested: Iterable[SubResourceKind],
) -> Evaluation:
    """
    complete 当且仅当题面成功且每个请求的子资源 achieved == total。
    未请求的子资源完全不参与判定，也不产生原因。
    """
    requested = set(requested)
    reasons: List[str] = []

    if not description_ok:
        reasons.append("Description download failed")

    for outcome in (templates, official_answer, community_answer):
        if outcome.kind not in requested:
            continue
        if outcome.achieved < outcome.total:
            reasons.append(f"{_REASON_LABELS[outcome.kind]} incomplete: {outcome.achieved}/{outcome.total}")

    if not description_ok:
        status = ItemStatus.FAILED
    elif reasons:
        status = ItemStatus.PARTIAL
    else:
        status = ItemStatus.COMPLETE
    return Evaluation(status=status, reasons=reasons)
