"""Unit tests for envprof.domain.dotenv — pure parsing functions."""

from envprof.domain.dotenv import (
    decode_env,
    encode_env,
    is_utf8,
    parse_env,
    printable,
    serialize_env,
    to_env_vars,
)
from envprof.models import EnvVar


class TestParseEnv:
    def test_parses_simple_content(self):
        """
        Given content with two KEY=value lines
        When parse_env is called
        Then both pairs are returned
        """
        assert parse_env("DB_HOST=localhost\nDB_PORT=5432") == {
            "DB_HOST": "localhost",
            "DB_PORT": "5432",
        }

    def test_skips_comment_blank_and_equals_free_lines(self):
        """
        Given a comment line, a blank line, a line without = and two assignments
        When parse_env is called
        Then only the assignments produce entries and quotes are stripped
        """
        result = parse_env('# comment\n\nKEY=value\nNOEQUALSIGN\nK2="q"')
        assert result == {"KEY": "value", "K2": "q"}

    def test_last_occurrence_wins(self):
        """
        Given the same key assigned twice
        When parse_env is called
        Then the later value is kept
        """
        assert parse_env("A=1\nA=2") == {"A": "2"}

    def test_value_may_contain_equals(self):
        """
        Given a value that itself contains = signs
        When parse_env is called
        Then the key is split off at the first = only
        """
        assert parse_env("TOKEN=abc=def==") == {"TOKEN": "abc=def=="}

    def test_whitespace_around_key_and_value_is_stripped(self):
        """
        Given spaces around the key, the = and the value
        When parse_env is called
        Then key and value are trimmed
        """
        assert parse_env("  SPACED  =  value  ") == {"SPACED": "value"}

    def test_indented_comment_is_skipped(self):
        """
        Given a comment line with leading whitespace
        When parse_env is called
        Then it is still treated as a comment
        """
        assert parse_env("   # APP_ENV=prod\nAPP_ENV=dev") == {"APP_ENV": "dev"}

    def test_single_quotes_are_stripped(self):
        """
        Given a single-quoted value
        When parse_env is called
        Then the quotes are removed
        """
        assert parse_env("APP_DESC='Single quotes work too'") == {
            "APP_DESC": "Single quotes work too"
        }

    def test_quote_trim_is_not_balanced(self):
        """
        Given a value opening with " and closing with '
        When parse_env is called
        Then both outer quote characters are trimmed regardless of pairing
        """
        assert parse_env("MIXED=\"a'") == {"MIXED": "a"}

    def test_quote_trim_removes_repeated_quote_characters(self):
        """
        Given a value wrapped in a double and a single quote layer
        When parse_env is called
        Then every quote character at either end is trimmed
        """
        assert parse_env("NESTED=\"'x'\"") == {"NESTED": "x"}

    def test_empty_value_is_preserved(self):
        """
        Given KEY= with nothing after the =
        When parse_env is called
        Then the key maps to an empty string
        """
        assert parse_env("EMPTY=") == {"EMPTY": ""}

    def test_crlf_line_endings(self):
        """
        Given content with Windows line endings
        When parse_env is called
        Then the trailing carriage returns do not leak into values
        """
        assert parse_env("APP_NAME=Test\r\nAPP_ENV=local\r\n") == {
            "APP_NAME": "Test",
            "APP_ENV": "local",
        }

    def test_empty_content_returns_empty_dict(self):
        """
        Given an empty string
        When parse_env is called
        Then it returns an empty dict
        """
        assert parse_env("") == {}

    def test_url_values_keep_query_strings(self):
        """
        Given a URL value containing ? & and =
        When parse_env is called
        Then the full URL is kept as the value
        """
        result = parse_env("APP_URL=https://example.com?param=value&other=test")
        assert result == {"APP_URL": "https://example.com?param=value&other=test"}


class TestSerializeEnv:
    def test_content_is_returned_verbatim(self):
        """
        Given content with comments, CRLF and no trailing newline
        When serialize_env is called
        Then the exact same string comes back
        """
        content = "# header\r\nA=1\r\n\r\nB='x'"
        assert serialize_env(content) == content


class TestToEnvVars:
    def test_preserves_order(self):
        """
        Given a parsed mapping
        When to_env_vars is called
        Then rows come back in mapping order
        """
        result = to_env_vars(parse_env("B=2\nA=1"))
        assert result == [EnvVar(key="B", value="2"), EnvVar(key="A", value="1")]

    def test_empty_mapping(self):
        """
        Given an empty mapping
        When to_env_vars is called
        Then it returns an empty list
        """
        assert to_env_vars({}) == []


class TestByteCodec:
    def test_invalid_utf8_round_trips(self):
        """
        Given bytes that are not valid UTF-8
        When they are decoded and encoded again
        Then the original bytes come back
        """
        data = b"NAME=Jos\xe9\nKEY=\xff\r\n"
        assert encode_env(decode_env(data)) == data

    def test_valid_utf8_decodes_normally(self):
        """
        Given UTF-8 bytes with non-ASCII characters
        When decode_env is called
        Then the ordinary text is returned
        """
        assert decode_env("APP_NAME=Café".encode()) == "APP_NAME=Café"

    def test_is_utf8(self):
        """
        Given decoded text with and without undecodable bytes
        When is_utf8 is called
        Then only the clean text passes
        """
        assert is_utf8("APP_NAME=Café") is True
        assert is_utf8(decode_env(b"NAME=Jos\xe9")) is False

    def test_printable_replaces_undecodable_bytes(self):
        """
        Given decoded text carrying a Latin-1 byte
        When printable is called
        Then the byte shows as the replacement character
        """
        assert printable(decode_env(b"NAME=Jos\xe9")) == "NAME=Jos�"
