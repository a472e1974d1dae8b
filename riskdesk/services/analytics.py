from typing import Dict, Iterable

from riskdesk.core.models import Trade

class AnalyticsService:
    @staticmethod
    def calculate_stats(trades: Iterable[Trade]) -> Dict:
        """
        Calculate UDR performance statistics from the closed trades.
        Each closed trade contributes its udr_ganados (+1/+2/+3 or -1).
        Trades are evaluated in the order they were closed, regardless of input
        order; legacy trades without closed_at fall back to their creation time.
        """
        closed = sorted(
            (t for t in trades if t.is_closed),
            key=lambda t: t.closing.closed_at or t.timestamp,
        )

        if not closed:
            return {
                "total_udr": 0,
                "avg_udr": 0.0,
                "win_rate": 0.0,
                "max_consecutive_loss": 0,
                "max_drawdown": 0,
                "count": 0
            }

        udrs = [t.closing.udr_ganados for t in closed]

        count = len(udrs)
        total_udr = sum(udrs)
        avg_udr = total_udr / count

        # Win Rate: net ganancia > 0 is a win (commission can turn a target hit negative).
        wins = sum(1 for t in closed if t.closing.ganancia > 0)
        win_rate = (wins / count) * 100

        # Max Consecutive Loss
        max_loss_streak = 0
        current_loss_streak = 0
        for udr in udrs:
            if udr < 0:
                current_loss_streak += 1
            else:
                max_loss_streak = max(max_loss_streak, current_loss_streak)
                current_loss_streak = 0
        # Check last streak
        max_loss_streak = max(max_loss_streak, current_loss_streak)

        # Max Drawdown: decline from a historical peak of cumulative UDR.
        current_equity = 0
        peak = 0
        max_dd = 0
        for udr in udrs:
            current_equity += udr
            peak = max(peak, current_equity)
            max_dd = max(max_dd, peak - current_equity)

        return {
            "total_udr": total_udr,
            "avg_udr": round(avg_udr, 2),
            "win_rate": round(win_rate, 1),
            "max_consecutive_loss": max_loss_streak,
            "max_drawdown": -max_dd,  # negative value for display
            "count": count
        }
