"""Reclassification rules.

A rule pairs a predicate over the current class state with a target class.
Rules are applied strictly in sequence: each predicate sees the grid left by
the previous rule, and a later rule wins on any pixel two rules both touch.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, List, NamedTuple, Sequence, Tuple
import logging

import numpy as np
import pandas as pd

from lcrefine.grid.algebra import class_mask

__all__ = ['RuleStatus', 'RuleOutcome', 'Rule', 'apply_rules', 'outcomes_to_frame']

logger = logging.getLogger(__name__)


class RuleStatus(str, Enum):
    """How a rule ended.

    EMPTY_CLASS_SUPPORT is ordinary data, not an error: the rule's source
    class had no cells, so the rule was a no-op.
    """
    APPLIED = "applied"
    NO_CHANGE = "no_change"
    EMPTY_CLASS_SUPPORT = "empty_class_support"


class RuleOutcome(NamedTuple):
    stage: str
    rule: str
    target: int
    status: RuleStatus
    n_changed: int


@dataclass(frozen=True)
class Rule:
    """``predicate(values, context) -> mask``; mask cells become ``target``."""
    name: str
    source_classes: Tuple[int, ...]
    target: int
    predicate: Callable[[np.ndarray, Any], np.ndarray]

    def apply(self, values: np.ndarray, context: Any,
              stage: str) -> Tuple[np.ndarray, RuleOutcome]:
        if not class_mask(values, self.source_classes).any():
            logger.debug("Rule %s: no %s cells, skipped", self.name, self.source_classes)
            return values, RuleOutcome(stage, self.name, self.target,
                                       RuleStatus.EMPTY_CLASS_SUPPORT, 0)

        changed = self.predicate(values, context) & (values != self.target)
        n_changed = int(np.count_nonzero(changed))
        if n_changed == 0:
            return values, RuleOutcome(stage, self.name, self.target,
                                       RuleStatus.NO_CHANGE, 0)

        out = values.copy()
        out[changed] = self.target
        logger.debug("Rule %s: %d cells -> class %d", self.name, n_changed, self.target)
        return out, RuleOutcome(stage, self.name, self.target, RuleStatus.APPLIED, n_changed)


def apply_rules(values: np.ndarray, rules: Sequence[Rule], context: Any,
                stage: str) -> Tuple[np.ndarray, List[RuleOutcome]]:
    """Apply ``rules`` in order, threading the working grid through them."""
    outcomes = []
    for rule in rules:
        values, outcome = rule.apply(values, context, stage)
        outcomes.append(outcome)
    return values, outcomes


def outcomes_to_frame(outcomes: Sequence[RuleOutcome]) -> pd.DataFrame:
    """One row per rule outcome, in application order."""
    df = pd.DataFrame(list(outcomes), columns=list(RuleOutcome._fields))
    df["status"] = df["status"].map(lambda s: RuleStatus(s).value)
    return df
