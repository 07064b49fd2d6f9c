from datetime import datetime, timedelta, timezone

from ..messages.models import MessageRepository
from ..newsletter.models import SubscriberRepository

TIME_RANGES = {
    '7d': timedelta(days=7),
    '30d': timedelta(days=30),
    '90d': timedelta(days=90),
    '1y': timedelta(days=365),
}
DEFAULT_RANGE = '30d'


def _percent(part, whole):
    return round(part / whole * 100, 1) if whole else 0


def _range_start(time_range):
    """Unknown ranges fall back to 30d"""
    if time_range not in TIME_RANGES:
        time_range = DEFAULT_RANGE
    return time_range, (datetime.now(timezone.utc) - TIME_RANGES[time_range]).isoformat()


class Analytics:
    """Cross-resource dashboard figures for newsletter and messages"""

    def __init__(self, database):
        self.database = database
        self.subscribers = SubscriberRepository(database)
        self.messages = MessageRepository(database)

    def _trend(self, table, column, since):
        rows = self.database.fetch_all(
            f"""
            SELECT substr({column}, 1, 10) AS day, COUNT(*) AS count
            FROM {table} WHERE {column} >= ?
            GROUP BY day ORDER BY day
            """,
            (since,),
        )
        return [{'date': row['day'], 'count': row['count']} for row in rows]

    def _count_since(self, table, column, since):
        return self.database.scalar(f"SELECT COUNT(*) FROM {table} WHERE {column} >= ?", (since,))

    def overview(self, time_range='30d'):
        time_range, since = _range_start(time_range)

        newsletter = self.subscribers.stats()
        newsletter['new'] = self._count_since(self.subscribers.table, 'subscribed_at', since)
        newsletter['trend'] = self._trend(self.subscribers.table, 'subscribed_at', since)

        messages = self.messages.stats()
        messages['new'] = self._count_since(self.messages.table, 'submitted_at', since)
        messages['trend'] = self._trend(self.messages.table, 'submitted_at', since)

        previous_total = max(newsletter['total'] - newsletter['new'], 1)
        metrics = {
            'engagement_rate': _percent(newsletter['by_status']['active'], newsletter['total']),
            'response_rate': _percent(messages['by_status']['replied'], messages['total']),
            'total_interactions': newsletter['total'] + messages['total'],
            'growth_rate': _percent(newsletter['new'], previous_total) if newsletter['new'] else 0,
        }

        return {
            'time_range': time_range,
            'newsletter': newsletter,
            'messages': messages,
            'metrics': metrics,
            'last_updated': datetime.now(timezone.utc).isoformat(),
        }

    def activity(self, time_range='30d', top_limit=5):
        """Signups and submissions inside the range, by day, plus the top subscriber sources"""
        time_range, since = _range_start(time_range)
        sources = self.database.fetch_all(
            f"""
            SELECT source, COUNT(*) AS count
            FROM {self.subscribers.table} WHERE subscribed_at >= ?
            GROUP BY source ORDER BY count DESC, source ASC LIMIT ?
            """,
            (since, top_limit),
        )
        return {
            'time_range': time_range,
            'newsletter_signups': self._count_since(self.subscribers.table, 'subscribed_at', since),
            'message_submissions': self._count_since(self.messages.table, 'submitted_at', since),
            'daily_activity': {
                'signups': self._trend(self.subscribers.table, 'subscribed_at', since),
                'submissions': self._trend(self.messages.table, 'submitted_at', since),
            },
            'top_sources': sources,
        }
