"""Cheap content fingerprint used to recognise renamed notes.

The value is the classic 32-bit string hash (``h = h * 31 + c`` over
UTF-16 code units, wrapped to a signed 32-bit integer) rendered in
decimal.  It matches fingerprints stored by earlier versions of the
publisher, so migrated ledgers keep detecting renames.

Not a cryptographic hash: collisions only cost a missed or spurious
rename match.
"""

from __future__ import annotations

_MASK = 0xFFFFFFFF
_SIGN_BIT = 0x80000000


def fingerprint(content: str) -> str:
    """Return the decimal fingerprint of *content*.

    >>> fingerprint("")
    '0'
    >>> fingerprint("hello")
    '99162322'
    """
    data = content.encode("utf-16-le", errors="surrogatepass")
    h = 0
    for i in range(0, len(data), 2):
        unit = data[i] | (data[i + 1] << 8)
        h = (h * 31 + unit) & _MASK
    if h & _SIGN_BIT:
        h -= 1 << 32
    return str(h)
