"""
Unit tests for the `?`-parameterized query builder.

The builder is stateless: it turns pending state and payloads into
(query, values) tuples without touching a store.
"""

import pytest

from ff_record.db.query_builder import PendingQuery, QueryBuilder
from ff_record.exceptions import EmptyPayloadError, InvalidIdentifierError


@pytest.fixture
def builder():
    return QueryBuilder()


class TestBuildSelect:
    """Test SELECT compilation from pending state."""

    def test_empty_state_selects_everything(self, builder):
        assert builder.build_select("users") == ("SELECT * FROM users", [])

    def test_conditions_joined_with_and_in_order(self, builder):
        pending = PendingQuery(conditions=[("age > ?", (18,)), ("active = ?", (1,))])

        query, values = builder.build_select("users", pending)

        assert query == "SELECT * FROM users WHERE age > ? AND active = ?"
        assert values == [18, 1]

    def test_multi_param_conditions_flatten_in_call_order(self, builder):
        pending = PendingQuery(
            conditions=[("age BETWEEN ? AND ?", (18, 65)), ("role IN (?, ?)", ("a", "b"))]
        )

        _, values = builder.build_select("users", pending)

        assert values == [18, 65, "a", "b"]

    def test_full_clause_order(self, builder):
        pending = PendingQuery(
            conditions=[("active = ?", (1,))], order_by="id DESC", limit=10, offset=20
        )

        query, values = builder.build_select("users", pending)

        assert query == "SELECT * FROM users WHERE active = ? ORDER BY id DESC LIMIT 10 OFFSET 20"
        assert values == [1]

    def test_offset_without_limit_is_dropped(self, builder):
        query, _ = builder.build_select("users", PendingQuery(offset=20))
        assert query == "SELECT * FROM users"

    def test_force_limit_replaces_limit_and_drops_offset(self, builder):
        query, _ = builder.build_select("users", PendingQuery(limit=50, offset=5), force_limit=1)
        assert query == "SELECT * FROM users LIMIT 1"

    def test_zero_limit_is_emitted(self, builder):
        query, _ = builder.build_select("users", PendingQuery(limit=0))
        assert query == "SELECT * FROM users LIMIT 0"

    def test_predicate_text_is_used_verbatim(self, builder):
        """Trusted predicate fragments are neither escaped nor rewritten."""
        pending = PendingQuery(conditions=[("status IN ('new', 'open')", ())])

        query, values = builder.build_select("users", pending)

        assert query == "SELECT * FROM users WHERE status IN ('new', 'open')"
        assert values == []


class TestBuildWrites:
    """Test INSERT/UPDATE/DELETE compilation."""

    def test_find(self, builder):
        assert builder.build_find("users", 7) == ("SELECT * FROM users WHERE id = ?", [7])

    def test_insert_uses_payload_order(self, builder):
        query, values = builder.build_insert("users", {"name": "Ada", "email": "ada@example.com"})

        assert query == "INSERT INTO users (name, email) VALUES (?, ?) RETURNING *"
        assert values == ["Ada", "ada@example.com"]

    def test_insert_without_returning(self, builder):
        query, _ = builder.build_insert("users", {"name": "Ada"}, returning=False)
        assert query == "INSERT INTO users (name) VALUES (?)"

    def test_update_binds_key_last(self, builder):
        query, values = builder.build_update("users", 3, {"name": "Bob", "active": 0})

        assert query == "UPDATE users SET name = ?, active = ? WHERE id = ?"
        assert values == ["Bob", 0, 3]

    def test_delete(self, builder):
        assert builder.build_delete("users", 3) == ("DELETE FROM users WHERE id = ?", [3])

    @pytest.mark.parametrize("build", ["insert", "update"])
    def test_empty_payload_rejected(self, builder, build):
        with pytest.raises(EmptyPayloadError):
            if build == "insert":
                builder.build_insert("users", {})
            else:
                builder.build_update("users", 1, {})

    def test_custom_key_column(self):
        builder = QueryBuilder(key_column="user_id")
        assert builder.build_delete("users", 3) == ("DELETE FROM users WHERE user_id = ?", [3])


class TestIdentifierValidation:
    """Identifiers go into the SQL text, so only plain names are allowed."""

    @pytest.mark.parametrize("identifier", ["users", "_tmp", "public.users", "Users2"])
    def test_valid_identifiers(self, builder, identifier):
        assert builder.validate_identifier(identifier) == identifier

    @pytest.mark.parametrize(
        "identifier", ["", "users; DROP TABLE x", "1users", "a.b.c", "name--", "na me"]
    )
    def test_invalid_identifiers(self, builder, identifier):
        with pytest.raises(InvalidIdentifierError):
            builder.validate_identifier(identifier)

    def test_invalid_column_in_payload(self, builder):
        with pytest.raises(InvalidIdentifierError):
            builder.build_insert("users", {"name) VALUES (1); --": "x"})

    def test_param_style(self, builder):
        assert builder.get_param_style() == "qmark"
