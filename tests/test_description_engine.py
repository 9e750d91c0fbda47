"""Tests for description_engine.py localized rule sentences."""

import pytest

from taskcadence.engines.description_engine import describe, resolve_locale
from taskcadence.rule import RecurrenceRule, validate
from taskcadence.type_defs import EndType, RecurrenceType
from tests.helpers import NEW_YORK, make_local_dt


class TestPortuguese:
    """Default pt-BR descriptions."""

    def test_weekly_with_days(self) -> None:
        """Weekday list follows the cadence in parentheses."""
        rule = validate(RecurrenceRule(type=RecurrenceType.WEEKLY, days_of_week=(5, 1, 3)))

        assert describe(rule) == "Repete semanalmente (seg, qua, sex), nunca termina"

    def test_monthly_interval_and_count(self) -> None:
        """Interval, day of month and occurrence count."""
        rule = validate(
            RecurrenceRule(
                type=RecurrenceType.MONTHLY,
                interval=2,
                day_of_month=31,
                end_type=EndType.COUNT,
                end_count=3,
            )
        )

        assert describe(rule) == "Repete a cada 2 meses, no dia 31, por 3 ocorrências"

    @pytest.mark.parametrize(
        ("rule_type", "expected"),
        [
            (RecurrenceType.DAILY, "Repete diariamente, nunca termina"),
            (RecurrenceType.WEEKLY, "Repete semanalmente, nunca termina"),
            (RecurrenceType.YEARLY, "Repete anualmente, nunca termina"),
            (RecurrenceType.CUSTOM, "Repete diariamente, nunca termina"),
        ],
    )
    def test_cadence(self, rule_type: RecurrenceType, expected: str) -> None:
        """Each type has its own cadence word."""
        assert describe(validate(RecurrenceRule(type=rule_type))) == expected

    def test_single_occurrence(self) -> None:
        """Count of one uses the singular."""
        rule = validate(RecurrenceRule(end_type=EndType.COUNT, end_count=1))

        assert describe(rule) == "Repete diariamente, por 1 ocorrência"

    def test_end_date_in_civil_zone(self) -> None:
        """End dates render as the civil date, not the UTC date."""
        rule = validate(
            RecurrenceRule(
                type=RecurrenceType.DAILY,
                interval=3,
                end_type=EndType.DATE,
                end_date=make_local_dt(2026, 12, 31, 22, 0),
            )
        )

        assert describe(rule) == "Repete a cada 3 dias, até 31/12/2026"

    def test_end_date_with_timezone_override(self) -> None:
        """tz selects the zone used for the end date."""
        rule = validate(
            RecurrenceRule(end_type=EndType.DATE, end_date=make_local_dt(2026, 1, 1, 0, 30))
        )

        assert describe(rule, tz=NEW_YORK) == "Repete diariamente, até 31/12/2025"


class TestEnglish:
    """en descriptions."""

    def test_weekly_interval(self) -> None:
        """Plural unit with weekday abbreviations."""
        rule = validate(
            RecurrenceRule(type=RecurrenceType.WEEKLY, interval=2, days_of_week=(0, 6))
        )

        assert describe(rule, "en") == "Repeats every 2 weeks (Sun, Sat), never ends"

    def test_monthly_until(self) -> None:
        """English end date format."""
        rule = validate(
            RecurrenceRule(
                type=RecurrenceType.MONTHLY,
                day_of_month=15,
                end_type=EndType.DATE,
                end_date=make_local_dt(2026, 6, 30),
            )
        )

        assert describe(rule, "en-US") == "Repeats monthly, on day 15, until Jun 30, 2026"

    def test_count(self) -> None:
        """English occurrence count."""
        rule = validate(
            RecurrenceRule(type=RecurrenceType.YEARLY, end_type=EndType.COUNT, end_count=5)
        )

        assert describe(rule, "en") == "Repeats yearly, for 5 occurrences"


class TestFallbacks:
    """describe() never raises."""

    def test_none_rule(self) -> None:
        """No rule means no recurrence."""
        assert describe(None) == "Não repetir"
        assert describe(None, "en") == "Does not repeat"

    def test_unknown_type(self) -> None:
        """Unknown types degrade to the generic sentence."""
        rule = RecurrenceRule.from_dict({"type": "hourly"})

        assert describe(rule) == "Repete periodicamente"
        assert describe(rule, "en") == "Repeats periodically"

    def test_unvalidated_garbage_fields(self) -> None:
        """Fields that bypassed validation still produce a sentence."""
        rule = RecurrenceRule(
            type=RecurrenceType.WEEKLY,
            interval="x",  # type: ignore[arg-type]
            days_of_week=(9,),
        )

        assert describe(rule) == "Repete periodicamente"

    @pytest.mark.parametrize(
        ("locale", "expected"),
        [
            (None, "pt-BR"),
            ("", "pt-BR"),
            ("pt", "pt-BR"),
            ("pt_BR", "pt-BR"),
            ("en", "en"),
            ("en_GB", "en"),
            ("fr-FR", "pt-BR"),
        ],
    )
    def test_resolve_locale(self, locale: str | None, expected: str) -> None:
        """Unknown locales fall back to pt-BR."""
        assert resolve_locale(locale) == expected
