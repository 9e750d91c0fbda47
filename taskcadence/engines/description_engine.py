"""Description Engine - human-readable sentences for recurrence rules.

Used by the task editor for a live preview on every change, so describe()
must stay cheap and must never raise: a rule it cannot fully understand
degrades to a generic sentence.

Supported locales: pt-BR (default, also "pt") and en. Unknown locales fall
back to pt-BR.
"""

from __future__ import annotations

from typing import Any
from zoneinfo import ZoneInfo

from .. import const
from ..rule import RecurrenceRule
from ..type_defs import EndType, RecurrenceType
from ..utils.dt_utils import dt_format_short

_PHRASES: dict[str, dict[str, Any]] = {
    const.LOCALE_PT_BR: {
        "no_repeat": "Não repetir",
        "prefix": "Repete",
        "fallback": "Repete periodicamente",
        "cadence": {
            RecurrenceType.DAILY: "diariamente",
            RecurrenceType.WEEKLY: "semanalmente",
            RecurrenceType.MONTHLY: "mensalmente",
            RecurrenceType.YEARLY: "anualmente",
            RecurrenceType.CUSTOM: "diariamente",
        },
        "every": "a cada {count} {unit}",
        "units": {
            RecurrenceType.DAILY: "dias",
            RecurrenceType.WEEKLY: "semanas",
            RecurrenceType.MONTHLY: "meses",
            RecurrenceType.YEARLY: "anos",
            RecurrenceType.CUSTOM: "dias",
        },
        "weekdays": ("dom", "seg", "ter", "qua", "qui", "sex", "sáb"),
        "day_of_month": "no dia {day}",
        "end_never": "nunca termina",
        "end_date": "até {date}",
        "end_count_one": "por 1 ocorrência",
        "end_count": "por {count} ocorrências",
    },
    const.LOCALE_EN: {
        "no_repeat": "Does not repeat",
        "prefix": "Repeats",
        "fallback": "Repeats periodically",
        "cadence": {
            RecurrenceType.DAILY: "daily",
            RecurrenceType.WEEKLY: "weekly",
            RecurrenceType.MONTHLY: "monthly",
            RecurrenceType.YEARLY: "yearly",
            RecurrenceType.CUSTOM: "daily",
        },
        "every": "every {count} {unit}",
        "units": {
            RecurrenceType.DAILY: "days",
            RecurrenceType.WEEKLY: "weeks",
            RecurrenceType.MONTHLY: "months",
            RecurrenceType.YEARLY: "years",
            RecurrenceType.CUSTOM: "days",
        },
        "weekdays": ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat"),
        "day_of_month": "on day {day}",
        "end_never": "never ends",
        "end_date": "until {date}",
        "end_count_one": "for 1 occurrence",
        "end_count": "for {count} occurrences",
    },
}


def resolve_locale(locale: str | None) -> str:
    """Map a locale code to a supported one ("pt" -> "pt-BR", "en-US" -> "en")."""
    if not locale:
        return const.DEFAULT_LOCALE
    normalized = locale.replace("_", "-").lower()
    if normalized.startswith("en"):
        return const.LOCALE_EN
    return const.LOCALE_PT_BR


def describe(
    rule: RecurrenceRule | None,
    locale: str | None = const.DEFAULT_LOCALE,
    *,
    tz: ZoneInfo | str | None = None,
) -> str:
    """Render a rule as a short sentence.

    Examples (pt-BR):
        "Repete semanalmente (seg, qua, sex), nunca termina"
        "Repete a cada 2 meses, no dia 31, por 3 ocorrências"

    Args:
        rule: Rule to describe, or None for "no recurrence"
        locale: Locale code
        tz: Civil timezone for the end date. Uses the default if omitted.

    Returns:
        Localized description. Never raises.
    """
    language = resolve_locale(locale)
    phrases = _PHRASES[language]

    if rule is None:
        return phrases["no_repeat"]
    if not rule.is_supported:
        return phrases["fallback"]

    try:
        clauses = [_cadence_clause(rule, phrases)]
        detail = _detail_clause(rule, phrases)
        if detail:
            clauses.append(detail)
        clauses.append(_end_clause(rule, phrases, language, tz))
    except (TypeError, ValueError, IndexError, KeyError, OverflowError) as err:
        const.LOGGER.debug("describe: falling back for rule %s: %s", rule, err)
        return phrases["fallback"]

    # Weekday lists read as "(seg, qua)" right after the cadence
    sentence = f"{phrases['prefix']} {clauses[0]}"
    for clause in clauses[1:]:
        sentence += f" {clause}" if clause.startswith("(") else f", {clause}"
    return sentence


def _cadence_clause(rule: RecurrenceRule, phrases: dict[str, Any]) -> str:
    rule_type = RecurrenceType(rule.type)
    if rule.interval > 1:
        return phrases["every"].format(
            count=rule.interval, unit=phrases["units"][rule_type]
        )
    return phrases["cadence"][rule_type]


def _detail_clause(rule: RecurrenceRule, phrases: dict[str, Any]) -> str:
    if rule.type == RecurrenceType.WEEKLY and rule.days_of_week:
        names = phrases["weekdays"]
        days = sorted({d for d in rule.days_of_week if 0 <= d < len(names)})
        if days:
            return "(" + ", ".join(names[d] for d in days) + ")"
    if rule.type == RecurrenceType.MONTHLY:
        return phrases["day_of_month"].format(day=rule.day_of_month)
    return ""


def _end_clause(
    rule: RecurrenceRule,
    phrases: dict[str, Any],
    language: str,
    tz: ZoneInfo | str | None,
) -> str:
    if rule.end_type == EndType.DATE and rule.end_date is not None:
        return phrases["end_date"].format(
            date=dt_format_short(rule.end_date, language, tz=tz)
        )
    if rule.end_type == EndType.COUNT and rule.end_count is not None:
        if rule.end_count == 1:
            return phrases["end_count_one"]
        return phrases["end_count"].format(count=rule.end_count)
    return phrases["end_never"]
