"""Unit tests for engines.sql.template_engine: resolving dashboard SQL templates."""

from mitsume.engines.sql import ParameterTemplateEngine, resolve_parameters
from mitsume.models_params import DateRangeTargets, ParameterDefinition, ResolvedQuery


def _range(name: str = "range", **kw) -> ParameterDefinition:
    return ParameterDefinition(name=name, type="daterange", **kw)


class TestResolveBasics:
    def test_all_values_supplied(self):
        defs = [
            ParameterDefinition(name="region", type="select", sql_format="string"),
            ParameterDefinition(name="n", type="number", sql_format="number"),
        ]
        sql, missing = resolve_parameters(
            "SELECT * FROM t WHERE region = {{region}} LIMIT {{n}}",
            {"region": "EU", "n": 10},
            defs,
        )
        assert sql == "SELECT * FROM t WHERE region = 'EU' LIMIT 10"
        assert missing == ()
        assert "{{" not in sql

    def test_returns_resolved_query(self):
        out = resolve_parameters("SELECT 1", {}, [])
        assert isinstance(out, ResolvedQuery)
        assert out.is_complete

    def test_every_occurrence_replaced(self):
        defs = [ParameterDefinition(name="x", sql_format="number")]
        sql, _ = resolve_parameters("{{x}} + {{x}}", {"x": 2}, defs)
        assert sql == "2 + 2"

    def test_idempotent(self):
        defs = [ParameterDefinition(name="s", sql_format="string")]
        args = ("WHERE a = {{s}} AND b = {{missing}}", {"s": "it's"}, defs, False)
        assert resolve_parameters(*args) == resolve_parameters(*args)

    def test_numeric_normalisation(self):
        defs = [ParameterDefinition(name="n", sql_format="number")]
        assert resolve_parameters("{{n}}", {"n": 42.0}, defs).sql == "42"
        assert resolve_parameters("{{n}}", {"n": 42.5}, defs).sql == "42.5"


class TestMissing:
    def test_absent_value_reported_and_left(self):
        sql, missing = resolve_parameters("WHERE a = {{a}}", {}, [])
        assert sql == "WHERE a = {{a}}"
        assert missing == ("a",)

    def test_null_and_blank_are_missing(self):
        assert resolve_parameters("{{a}}", {"a": None}).missing == ("a",)
        assert resolve_parameters("{{a}}", {"a": ""}).missing == ("a",)
        assert resolve_parameters("{{a}}", {"a": []}).missing == ("a",)

    def test_order_and_dedup(self):
        _, missing = resolve_parameters("{{b}} {{a}} {{b}}", {}, [])
        assert missing == ("b", "a")

    def test_partial_substitution(self):
        defs = [ParameterDefinition(name="a", sql_format="number")]
        sql, missing = resolve_parameters("{{a}} {{b}}", {"a": 1}, defs)
        assert sql == "1 {{b}}"
        assert missing == ("b",)


class TestEmptyBehavior:
    def test_match_none(self):
        defs = [ParameterDefinition(name="f", empty_behavior="match_none")]
        sql, missing = resolve_parameters("SELECT * FROM t WHERE {{f}}", {}, defs)
        assert sql == "SELECT * FROM t WHERE 1=0"
        assert missing == ()

    def test_null(self):
        defs = [ParameterDefinition(name="v", sql_format="string", empty_behavior="null")]
        sql, missing = resolve_parameters("WHERE x = {{v}}", {"v": ""}, defs)
        assert sql == "WHERE x = NULL"
        assert missing == ()

    def test_missing_is_default(self):
        defs = [ParameterDefinition(name="v", sql_format="string")]
        assert resolve_parameters("{{v}}", {}, defs).missing == ("v",)

    def test_invalid_value_is_not_empty(self):
        # a rejected value is missing even when empty_behavior would substitute
        defs = [ParameterDefinition(name="n", sql_format="number", empty_behavior="null")]
        sql, missing = resolve_parameters("{{n}}", {"n": "abc"}, defs)
        assert sql == "{{n}}"
        assert missing == ("n",)


class TestSecurity:
    def test_string_injection_quoted(self):
        defs = [ParameterDefinition(name="name", sql_format="string")]
        sql, missing = resolve_parameters(
            "SELECT * FROM users WHERE name = {{name}}",
            {"name": "'); DROP TABLE x; --"},
            defs,
        )
        assert sql == "SELECT * FROM users WHERE name = '''); DROP TABLE x; --'"
        assert missing == ()

    def test_untrusted_raw_fails_closed(self):
        defs = [ParameterDefinition(name="cond", sql_format="raw")]
        sql, missing = resolve_parameters("WHERE {{cond}}", {"cond": "1 OR 1=1"}, defs, False)
        assert sql == "WHERE {{cond}}"
        assert missing == ("cond",)

    def test_undeclared_placeholder_is_untrusted_raw(self):
        sql, missing = resolve_parameters("WHERE id = {{id}}", {"id": "1 OR 1=1"}, [])
        assert missing == ("id",)
        sql, missing = resolve_parameters("WHERE id = {{id}}", {"id": 17}, [])
        assert sql == "WHERE id = 17"

    def test_trusted_raw_allowed(self):
        defs = [ParameterDefinition(name="cond", sql_format="raw")]
        sql, missing = resolve_parameters("WHERE {{cond}}", {"cond": "a = 1 OR b = 2"}, defs, True)
        assert sql == "WHERE a = 1 OR b = 2"
        assert missing == ()

    def test_unknown_sql_format_stays_trust_gated(self):
        defs = [ParameterDefinition.model_validate({"name": "c", "sql_format": "sql"})]
        assert resolve_parameters("{{c}}", {"c": "1 OR 1=1"}, defs).missing == ("c",)

    def test_lists(self):
        defs = [
            ParameterDefinition(name="ids", type="multiselect", sql_format="number_list"),
            ParameterDefinition(name="names", type="multiselect", sql_format="string_list"),
        ]
        sql, missing = resolve_parameters(
            "WHERE id IN ({{ids}}) AND name IN ({{names}})",
            {"ids": [1, 2, 3], "names": "a,b'c"},
            defs,
        )
        assert sql == "WHERE id IN (1,2,3) AND name IN ('a','b''c')"
        assert missing == ()


class TestDateRange:
    def test_split_sites_from_string(self):
        sql, missing = resolve_parameters(
            "WHERE d BETWEEN {{range_start}} AND {{range_end}}",
            {"range": "2024-01-01,2024-01-31"},
            [_range()],
        )
        assert sql == "WHERE d BETWEEN DATE '2024-01-01' AND DATE '2024-01-31'"
        assert missing == ()

    def test_split_sites_from_object(self):
        sql, _ = resolve_parameters(
            "{{range_start}}|{{range_end}}",
            {"range": {"start": "2024-01-01", "end": "2024-01-31"}},
            [_range()],
        )
        assert sql == "DATE '2024-01-01'|DATE '2024-01-31'"

    def test_explicit_targets(self):
        d = _range("period", targets=DateRangeTargets(start="from_day", end="to_day"))
        sql, missing = resolve_parameters(
            "d >= {{from_day}} AND d < {{to_day}}",
            {"period": "2024-02-01,2024-03-01"},
            [d],
        )
        assert sql == "d >= DATE '2024-02-01' AND d < DATE '2024-03-01'"
        assert missing == ()

    def test_bare_range_placeholder(self):
        sql, missing = resolve_parameters(
            "WHERE d BETWEEN {{range}}", {"range": "2024-01-01, 2024-01-31"}, [_range()]
        )
        assert sql == "WHERE d BETWEEN DATE '2024-01-01' AND DATE '2024-01-31'"
        assert missing == ()

    def test_bare_range_needs_both_ends(self):
        sql, missing = resolve_parameters("WHERE d BETWEEN {{range}}", {"range": "2024-01-01,"}, [_range()])
        assert sql == "WHERE d BETWEEN {{range}}"
        assert missing == ("range",)

    def test_incomplete_reported_once(self):
        sql, missing = resolve_parameters(
            "{{range_start}} {{range_end}}", {"range": "2024-01-01,bad"}, [_range()]
        )
        assert sql == "DATE '2024-01-01' {{range_end}}"
        assert missing == ("range",)

    def test_absent_range_reported_once(self):
        _, missing = resolve_parameters("{{range_start}} {{range_end}}", {}, [_range()])
        assert missing == ("range",)

    def test_value_keyed_by_placeholder(self):
        sql, missing = resolve_parameters(
            "{{range_start}} {{range_end}}",
            {"range_start": "2024-01-01", "range_end": "2024-01-31"},
            [_range()],
        )
        assert sql == "DATE '2024-01-01' DATE '2024-01-31'"
        assert missing == ()

    def test_logical_name_takes_precedence(self):
        sql, _ = resolve_parameters(
            "{{range_start}}",
            {"range": "2024-05-01,2024-05-31", "range_start": "1999-01-01"},
            [_range()],
        )
        assert sql == "DATE '2024-05-01'"

    def test_match_none_range(self):
        sql, missing = resolve_parameters(
            "WHERE {{range}}", {}, [_range(empty_behavior="match_none")]
        )
        assert sql == "WHERE 1=0"
        assert missing == ()

    def test_injection_in_range_rejected(self):
        _, missing = resolve_parameters(
            "{{range_start}}", {"range": "2024-01-01' OR '1'='1,2024-01-02"}, [_range()]
        )
        assert missing == ("range",)


class TestParameterTemplateEngine:
    def test_resolve_uses_definitions(self):
        e = ParameterTemplateEngine([ParameterDefinition(name="s", sql_format="string")])
        assert e.resolve("{{s}}", {"s": "x"}).sql == "'x'"

    def test_parse_parameters(self):
        e = ParameterTemplateEngine()
        assert e.parse_parameters("{{b}} {{a}} {{b}}") == ["b", "a"]

    def test_logical_parameters(self):
        e = ParameterTemplateEngine([_range("period")])
        assert e.logical_parameters("{{period_start}} {{period_end}} {{x}}") == ["period", "x"]
