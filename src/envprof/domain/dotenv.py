"""Pure domain functions for reading ``.env`` text.

The raw text is always the source of truth.  Parsing here is a best-effort,
lossy view used for display and inspection; nothing in the application ever
rebuilds file content from a parsed mapping, so the serializer is a verbatim
passthrough.

Bytes that are not valid UTF-8 are carried through ``surrogateescape`` so
decoding and re-encoding any file gives back the same bytes.
"""

from envprof.constants import ENV_ENCODING, ENV_ENCODING_ERRORS
from envprof.models import EnvVar

_QUOTE_CHARS = "\"'"


def parse_env(text: str) -> dict[str, str]:
    """Parse ``.env`` text into a key→value dict.

    Each ``\\n``-separated line is processed:
    - Surrounding whitespace is stripped; blank lines and lines starting
      with ``#`` are skipped.
    - Lines without ``=`` are ignored.
    - Lines are split on the first ``=`` only, so values may themselves
      contain ``=`` (e.g. base64 tokens).
    - Key and value are stripped, then any ``"`` / ``'`` characters are
      trimmed from both ends of the value.  This is a character trim, not a
      balanced-quote check: ``"a'`` becomes ``a``.

    Later occurrences of a key overwrite earlier ones.  Never raises.
    """
    env: dict[str, str] = {}
    for line in text.split("\n"):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        if "=" not in stripped:
            continue
        key, _, value = stripped.partition("=")
        env[key.strip()] = value.strip().strip(_QUOTE_CHARS)
    return env


def serialize_env(text: str) -> str:
    """Return content exactly as it should be written to disk (unchanged)."""
    return text


def to_env_vars(env: dict[str, str]) -> list[EnvVar]:
    """Convert a parsed mapping into table rows, preserving insertion order."""
    return [EnvVar(key=key, value=value) for key, value in env.items()]


def decode_env(data: bytes) -> str:
    """Decode file bytes to text; undecodable bytes become lone surrogates."""
    return data.decode(ENV_ENCODING, ENV_ENCODING_ERRORS)


def encode_env(text: str) -> bytes:
    """Inverse of ``decode_env``."""
    return text.encode(ENV_ENCODING, ENV_ENCODING_ERRORS)


def is_utf8(text: str) -> bool:
    """Return False if ``text`` carries bytes that were not valid UTF-8."""
    try:
        text.encode(ENV_ENCODING)
    except UnicodeEncodeError:
        return False
    return True


def printable(text: str) -> str:
    """Replace undecodable bytes with U+FFFD for display."""
    return encode_env(text).decode(ENV_ENCODING, "replace")
