import pytest

from sqlquill.query.errors import TemplateSyntaxError, UnknownModifierError
from sqlquill.query.modifiers import ModifierKind, TokenType, arity, split_key, tokenize


def test_tokenize_splits_literals_identifiers_and_strings():
    tokens = tokenize("SELECT %n FROM [users] WHERE name = 'O''Brien'")
    types = [token.type for token in tokens]
    assert types == [
        TokenType.LITERAL,
        TokenType.MODIFIER,
        TokenType.LITERAL,
        TokenType.IDENTIFIER,
        TokenType.LITERAL,
        TokenType.STRING,
    ]
    assert tokens[1].modifier is ModifierKind.IDENTIFIER
    assert tokens[3].text == "users"
    assert tokens[5].text == "O'Brien"


def test_tokens_inside_string_literals_are_not_interpreted():
    tokens = tokenize("SELECT '%i :x: ?'")
    assert [token.type for token in tokens] == [TokenType.LITERAL, TokenType.STRING]


def test_arity_counts_only_value_consuming_tokens():
    assert arity("%if %s %else %i %end") == 3
    assert arity("SELECT :prefix:users WHERE a = ?") == 1
    assert arity("SELECT 1") == 0


def test_double_percent_is_a_literal():
    tokens = tokenize("5 %% 2")
    assert "".join(token.text for token in tokens) == "5 % 2"
    assert arity("5 %% 2") == 0


def test_cast_operator_is_not_a_substitution():
    assert all(token.type is not TokenType.SUBSTITUTION for token in tokenize("x::int"))
    assert tokenize(":prefix:users")[0].type is TokenType.SUBSTITUTION


def test_unknown_modifier_reports_position():
    with pytest.raises(UnknownModifierError) as exc:
        tokenize("SELECT %zz")
    assert exc.value.token == "%zz"
    assert exc.value.position == 7


def test_unterminated_quote_raises():
    with pytest.raises(TemplateSyntaxError):
        tokenize("SELECT 'oops")


def test_split_key():
    assert split_key("price%f") == ("price", ModifierKind.FLOAT)
    assert split_key("id%in") == ("id", ModifierKind.IN_LIST)
    assert split_key("name") == ("name", None)
    with pytest.raises(UnknownModifierError):
        split_key("name%bogus")
