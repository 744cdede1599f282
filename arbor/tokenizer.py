"""
Arbor tokenizer: split one raw input line into tokens.

- POSIX shell rules via shlex: whitespace separates tokens, quotes group
  words ("a b" → one token), backslashes escape.
- Unbalanced quotes are a user fault (TokenizeError), not a crash.
"""
import shlex

from .faults import FaultCode, TokenizeError


def tokenize(line, /):
    """
    Split a raw line into an ordered list of string tokens.

    Raises
    - TypeError: line is not a string.
    - TokenizeError: a quote is never closed (code UNTERMINATED_QUOTE).
    """
    if not isinstance(line, str):
        raise TypeError("tokenize() argument must be a string")
    try:
        return shlex.split(line)
    except ValueError as error:
        raise TokenizeError(
            "cannot split input line: %s" % str(error).lower(),
            title="unterminated quote",
            code=FaultCode.UNTERMINATED_QUOTE,
            line=line,
            hint="close the quote or escape it with a backslash",
        ) from None


__all__ = (
    "tokenize",
)
