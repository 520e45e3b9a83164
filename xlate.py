#!/usr/bin/env python3
import argparse
import base64
import functools
import hashlib
import html
import json
import logging
import re
import sys
import urllib.parse
from typing import Callable, Dict, List, NamedTuple, Optional, Sequence

# RIPEMD-160 for OpenSSL builds whose hashlib lacks it
try:
    from Crypto.Hash import RIPEMD160
except ImportError:
    RIPEMD160 = None  # pycryptodome not available unless installed

log = logging.getLogger("xlate")

DEFAULT_TEXT = "Hello, World!"

ENCODE_ERROR = "Error encoding"
EMPTY_INPUT = "Please enter some text first"
TRANSLATED = "Translated to all formats"


# ---------- Errors ----------
class XlateError(Exception):
    def __str__(self):
        return str(self.args[0]) if self.args else ""


class EmptyInputError(XlateError, ValueError):
    pass


class SourceNotSupportedError(XlateError, ValueError):
    pass


class DecodeError(XlateError, ValueError):
    pass


class UnknownTransformError(XlateError, KeyError):
    pass


# ---------- Helpers ----------
def to_bytes(data, encoding='utf-8'):
    if isinstance(data, bytes):
        return data
    return str(data).encode(encoding)

def bytes_to_utf8(b: bytes) -> str:
    return b.decode('utf-8', errors='strict')

def identity(s: str) -> str:
    return s

def guarded(placeholder: str):
    """Turn any fault raised by a codec into ``placeholder``."""
    def wrap(fn):
        @functools.wraps(fn)
        def inner(text):
            try:
                return fn(text)
            except Exception as e:
                log.debug("%s failed on %r: %s", fn.__name__, text[:40], e)
                return placeholder
        return inner
    return wrap


# URL (encodeURIComponent leaves A-Z a-z 0-9 - _ . ! ~ * ' ( ) alone)
URL_SAFE = "!*'()"
BAD_PERCENT = re.compile(r"%(?![0-9A-Fa-f]{2})")

def url_encode(s: str) -> str:
    return urllib.parse.quote(s, safe=URL_SAFE)

def url_decode(s: str) -> str:
    if BAD_PERCENT.search(s):
        raise ValueError("malformed percent sequence")
    return urllib.parse.unquote(s, encoding='utf-8', errors='strict')

# Base64 (atob rules: whitespace ignored, padding optional)
B64_ALPHABET = re.compile(r"[A-Za-z0-9+/]*")

def base64_encode(s: str) -> str:
    return base64.b64encode(to_bytes(s)).decode('ascii')

def base64_decode(s: str) -> str:
    cleaned = re.sub(r"\s", "", s)
    if len(cleaned) % 4 == 0:
        cleaned = re.sub(r"={1,2}$", "", cleaned)
    if len(cleaned) % 4 == 1 or not B64_ALPHABET.fullmatch(cleaned):
        raise ValueError("not base64")
    padded = cleaned + '=' * (-len(cleaned) % 4)
    return bytes_to_utf8(base64.b64decode(padded, validate=True))

# Byte lists (hex / decimal / binary)
HEX_TOKEN = re.compile(r"[0-9a-fA-F]+")
DEC_TOKEN = re.compile(r"[0-9]+")
BIN_TOKEN = re.compile(r"[01]+")

def to_tokens(b: bytes, fmt: str) -> str:
    return " ".join(format(x, fmt) for x in b)

def from_tokens(s: str, base: int, token: re.Pattern) -> bytes:
    out = bytearray()
    for tok in s.split():
        if not token.fullmatch(tok):
            raise ValueError(f"bad token {tok!r}")
        out.append(int(tok, base))  # ValueError past 255
    return bytes(out)

def hex_encode(s: str) -> str:
    return to_tokens(to_bytes(s), "02x")

def hex_decode(s: str) -> str:
    return bytes_to_utf8(from_tokens(s, 16, HEX_TOKEN))

def decimal_encode(s: str) -> str:
    return to_tokens(to_bytes(s), "d")

def decimal_decode(s: str) -> str:
    return bytes_to_utf8(from_tokens(s, 10, DEC_TOKEN))

def binary_encode(s: str) -> str:
    return to_tokens(to_bytes(s), "08b")

def binary_decode(s: str) -> str:
    return bytes_to_utf8(from_tokens(s, 2, BIN_TOKEN))

# HTML entities: five characters out, the full HTML5 table back in
HTML_ESCAPES = {
    '&': '&amp;',
    '<': '&lt;',
    '>': '&gt;',
    '"': '&quot;',
    "'": '&#39;',
}

def html_escape(s: str) -> str:
    return ''.join(HTML_ESCAPES.get(ch, ch) for ch in s)

def html_unescape(s: str) -> str:
    return html.unescape(s)

# ROT13
def rot13(s: str) -> str:
    out = []
    for ch in s:
        o = ord(ch)
        if 65 <= o <= 90:
            out.append(chr((o - 65 + 13) % 26 + 65))
        elif 97 <= o <= 122:
            out.append(chr((o - 97 + 13) % 26 + 97))
        else:
            out.append(ch)
    return ''.join(out)

# Digests
def rmd160(data: bytes) -> str:
    try:
        return hashlib.new('ripemd160', data).hexdigest()
    except ValueError:
        # unsupported hash type
        if RIPEMD160 is None:
            raise RuntimeError("ripemd160 unavailable: pip install pycryptodome")
        return RIPEMD160.new(data).hexdigest()

def digest_summary(s: str) -> str:
    data = to_bytes(s)
    digests = [
        ('MD5', hashlib.md5(data).hexdigest()),
        ('SHA1', hashlib.sha1(data).hexdigest()),
        ('SHA256', hashlib.sha256(data).hexdigest()),
        ('SHA512', hashlib.sha512(data).hexdigest()),
        ('RMD160', rmd160(data)),
    ]
    return "\n".join(f"{algo}: {value}" for algo, value in digests)


# ---------- Transforms ----------
class Transform(NamedTuple):
    id: str
    name: str
    encode: Callable[[str], str]
    decode: Optional[Callable[[str], str]] = None
    is_reference: bool = False
    supports_decode_source: bool = True
    decode_error: Optional[str] = None


def _codec(transform_id, name, enc, dec, decode_error):
    return Transform(
        id=transform_id,
        name=name,
        encode=guarded(ENCODE_ERROR)(enc),
        decode=guarded(decode_error)(dec),
        decode_error=decode_error,
    )


TRANSFORMS = (
    Transform('text', 'Plain Text', identity, identity, is_reference=True),
    _codec('urlEncode', 'URL Encode', url_encode, url_decode, 'Invalid URL encoded text'),
    _codec('base64', 'Base64', base64_encode, base64_decode, 'Invalid Base64'),
    _codec('hex', 'Hexadecimal', hex_encode, hex_decode, 'Invalid hex'),
    _codec('decimal', 'Decimal (Bytes)', decimal_encode, decimal_decode, 'Invalid decimal'),
    _codec('binary', 'Binary', binary_encode, binary_decode, 'Invalid binary'),
    Transform('htmlEntities', 'HTML Entities', guarded(ENCODE_ERROR)(html_escape), html_unescape),
    Transform('rot13', 'ROT13', rot13, rot13),
    Transform('hashes', 'Hashes', guarded(ENCODE_ERROR)(digest_summary),
              supports_decode_source=False),
)


def check_catalog(transforms: Sequence[Transform]) -> None:
    ids = [t.id for t in transforms]
    if len(set(ids)) != len(ids):
        raise ValueError(f"duplicate transform ids in {ids}")
    refs = [t.id for t in transforms if t.is_reference]
    if len(refs) != 1:
        raise ValueError(f"expected exactly one reference transform, got {refs}")


check_catalog(TRANSFORMS)


def list_transforms() -> List[Transform]:
    """Catalog in display order."""
    return list(TRANSFORMS)

def get_transform(transform_id: str, transforms: Sequence[Transform] = TRANSFORMS) -> Transform:
    for t in transforms:
        if t.id == transform_id:
            return t
    raise UnknownTransformError(f"Unknown transform: {transform_id}")

def encode(transform_id: str, text: str) -> str:
    return get_transform(transform_id).encode(text)

def decode(transform_id: str, text: str) -> str:
    t = get_transform(transform_id)
    if not t.supports_decode_source or t.decode is None:
        raise SourceNotSupportedError(f"{t.name} cannot be decoded")
    return t.decode(text)


# ---------- Broadcast ----------
def broadcast_from(source_id: str, source_text: str,
                   transforms: Sequence[Transform] = TRANSFORMS,
                   strict: bool = False) -> Dict[str, str]:
    """Decode ``source_text`` from ``source_id`` and re-encode it into every other transform.

    Returns a mapping of transform id to text for every transform except the
    source. A decode failure normally yields the source's placeholder, which
    is then encoded like any other text; with ``strict`` it raises
    :class:`DecodeError` instead.

    Raises:
        UnknownTransformError: ``source_id`` is not in ``transforms``.
        SourceNotSupportedError: the source is encode-only (e.g. hashes).
        EmptyInputError: ``source_text`` is empty or whitespace.
    """
    source = get_transform(source_id, transforms)
    if not source.supports_decode_source or source.decode is None:
        raise SourceNotSupportedError(f"{source.name} cannot be used as a source")
    if not source_text.strip():
        raise EmptyInputError(EMPTY_INPUT)

    if source.is_reference:
        plain = source_text
    else:
        plain = source.decode(source_text)
        if source.decode_error is not None and plain == source.decode_error:
            if strict:
                raise DecodeError(plain)
            log.debug("decode from %s failed, propagating %r", source_id, plain)

    results = {}
    for t in transforms:
        if t.id == source_id:
            continue
        try:
            results[t.id] = t.encode(plain)
        except Exception:
            log.warning("encoding to %s failed", t.id, exc_info=True)
            results[t.id] = ENCODE_ERROR
    return results

def initial_fields() -> Dict[str, str]:
    """Field contents of a fresh session: the default text broadcast everywhere."""
    ref = next(t for t in TRANSFORMS if t.is_reference)
    fields = {ref.id: DEFAULT_TEXT}
    fields.update(broadcast_from(ref.id, DEFAULT_TEXT))
    return {t.id: fields[t.id] for t in TRANSFORMS}


# ---------- CLI commands ----------
def print_fields(fields, as_json=False):
    if as_json:
        print(json.dumps(fields, indent=2, ensure_ascii=False))
        return
    for tid, value in fields.items():
        print(f"{get_transform(tid).name}:")
        print(value)
        print()

def cmd_list(args):
    for t in list_transforms():
        flags = []
        if t.is_reference:
            flags.append('reference')
        if not t.supports_decode_source:
            flags.append('encode only')
        suffix = f" [{', '.join(flags)}]" if flags else ""
        print(f"{t.id:<14} {t.name}{suffix}")

def cmd_translate(args):
    text = args.text
    if text is None:
        text = sys.stdin.read()
        if text.endswith('\n'):
            text = text[:-1]
    fields = broadcast_from(args.source, text, strict=args.strict)
    print_fields(fields, as_json=args.json)
    print(TRANSLATED, file=sys.stderr)

def cmd_encode(args):
    print(encode(args.id, args.input))

def cmd_decode(args):
    print(decode(args.id, args.input))

def cmd_demo(args):
    print_fields(initial_fields(), as_json=args.json)


# ---------- Argument parser ----------
def build_parser():
    ids = [t.id for t in TRANSFORMS]
    sources = [t.id for t in TRANSFORMS if t.supports_decode_source]

    p = argparse.ArgumentParser(description="Translate text between encodings")
    p.add_argument('-v', '--verbose', action='store_true', help="Debug logging")
    sub = p.add_subparsers(dest='cmd', required=True)

    # list
    ls = sub.add_parser('list', help="Show registered transforms")
    ls.set_defaults(func=cmd_list)

    # translate
    t = sub.add_parser('translate', help="Decode from one transform and re-encode into all others")
    t.add_argument('source', choices=sources, help="Source transform")
    t.add_argument('text', nargs='?', help="Encoded text (default: read stdin)")
    t.add_argument('--json', action='store_true', help="Print results as JSON")
    t.add_argument('--strict', action='store_true', help="Fail instead of propagating decode errors")
    t.set_defaults(func=cmd_translate)

    # encode / decode
    e = sub.add_parser('encode', help="Encode plain text with one transform")
    e.add_argument('id', choices=ids)
    e.add_argument('input')
    e.set_defaults(func=cmd_encode)
    d = sub.add_parser('decode', help="Decode text from one transform")
    d.add_argument('id', choices=ids)
    d.add_argument('input')
    d.set_defaults(func=cmd_decode)

    # demo
    dm = sub.add_parser('demo', help=f"Show every field for {DEFAULT_TEXT!r}")
    dm.add_argument('--json', action='store_true')
    dm.set_defaults(func=cmd_demo)

    return p

def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        args.func(args)
    except XlateError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    return 0

if __name__ == "__main__":
    sys.exit(main())
