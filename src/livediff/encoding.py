import codecs
from typing import Protocol

import chardet

DEFAULT_ENCODING = "utf-8"

# Encodings whose text round-trips through our UTF-8 writes unchanged
_UTF8_COMPATIBLE = {"utf-8", "utf-8-sig", "ascii"}


class EncodingResolver(Protocol):
    def detect(self, raw: bytes) -> str: ...

    def decode(self, raw: bytes, encoding: str) -> str: ...


class DefaultEncodingResolver:
    """
    Prefers UTF-8 (with or without BOM) and falls back to chardet.

    A BOM is kept in the decoded text as U+FEFF, like editors that preserve
    it, so the streaming side can strip it consistently.
    """

    def detect(self, raw: bytes) -> str:
        if raw.startswith(codecs.BOM_UTF8):
            return "utf-8-sig"
        try:
            _ = raw.decode(DEFAULT_ENCODING)
            return DEFAULT_ENCODING
        except UnicodeDecodeError:
            pass

        info = chardet.detect(raw)
        return info.get("encoding") or DEFAULT_ENCODING

    def decode(self, raw: bytes, encoding: str) -> str:
        if encoding == "utf-8-sig":
            return "\ufeff" + raw.removeprefix(codecs.BOM_UTF8).decode(DEFAULT_ENCODING)
        return raw.decode(encoding, errors="replace")


def is_utf8_compatible(encoding: str) -> bool:
    try:
        return codecs.lookup(encoding).name in {codecs.lookup(e).name for e in _UTF8_COMPATIBLE}
    except LookupError:
        return False
