"""RRULE text adapter - splits stored rule text into a RecurrenceRule."""

import logging

from errand.core.recurrence import RecurrenceRule

logger = logging.getLogger(__name__)


class RRuleTextParser:
    """
    Minimal FREQ/INTERVAL/BYDAY reader for stored recurrence text.

    Implements RecurrenceParser protocol. Other RRULE parts (COUNT, UNTIL,
    BYMONTHDAY, ...) are ignored.
    """

    def parse(self, recurrence: str) -> RecurrenceRule:
        """Parse e.g. "RRULE:FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,WE"."""
        text = recurrence.strip()
        if text.upper().startswith("RRULE:"):
            text = text[len("RRULE:"):]

        parts = {}
        for token in text.split(";"):
            if "=" not in token:
                continue
            key, _, value = token.partition("=")
            parts[key.strip().upper()] = value.strip()

        if "FREQ" not in parts:
            raise ValueError(f"Recurrence has no FREQ: {recurrence!r}")

        ignored = set(parts) - {"FREQ", "INTERVAL", "BYDAY", "FROM"}
        if ignored:
            logger.debug(f"Ignoring recurrence parts {sorted(ignored)}")

        # Ordinal BYDAY values such as 2MO keep only the weekday
        by_day = [d.lstrip("+-0123456789") for d in parts.get("BYDAY", "").split(",")]
        return RecurrenceRule.from_parts(
            parts["FREQ"],
            interval=int(parts.get("INTERVAL") or 1),
            by_day=by_day,
        )
