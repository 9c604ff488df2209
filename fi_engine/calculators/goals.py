"""
Goal Progress Evaluator

Compares profit against the user's monthly target.
"""

from decimal import ROUND_HALF_UP, Decimal

from ..normalizer import to_decimal


class GoalEvaluator:
    """Turns profit and a monthly goal into a capped whole percentage."""

    MAX_PROGRESS = 100

    def goal_progress(self, total_profit, monthly_goal) -> int:
        """
        Percent of the monthly goal reached, clamped to 0..100.

        A goal of zero or less means no goal is set and reports 0.
        """
        goal = to_decimal(monthly_goal)
        if goal is None or goal <= 0:
            return 0

        profit = to_decimal(total_profit) or Decimal('0')
        progress = (profit / goal * Decimal('100')).quantize(Decimal('1'), rounding=ROUND_HALF_UP)
        return max(0, min(int(progress), self.MAX_PROGRESS))
