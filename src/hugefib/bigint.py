# src/hugefib/bigint.py
"""
Immutable arbitrary-precision signed integers.

A BigInt is a sign in {-1, 0, 1} plus a magnitude: a tuple of 32-bit words,
least significant word first, never ending in a zero word. Zero is the only
value with sign 0 and it always has the empty magnitude.

The magnitude helpers (`_add_mag`, `_mul_mag`, ...) work on plain word
sequences and know nothing about signs; the BigInt methods combine them.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering

from hugefib.utility import UserInputError, require_non_negative

WORD_BITS = 32
WORD_BASE = 1 << WORD_BITS
WORD_MASK = WORD_BASE - 1

# Largest power of ten below WORD_BASE, radix of the sequential decimal path
DEC_CHUNK_DIGITS = 9
DEC_CHUNK = 10 ** DEC_CHUNK_DIGITS

Mag = tuple[int, ...]


# ---------- Magnitude primitives ---------------------------------------------

def _strip(words) -> Mag:
    n = len(words)
    while n and not words[n - 1]:
        n -= 1
    return tuple(words[:n])


def _mag_from_int(v: int) -> Mag:
    """Split a non-negative native int into words."""
    if not v:
        return ()
    raw = v.to_bytes((v.bit_length() + 7) // 8, "little")
    pad = (-len(raw)) % 4
    if pad:
        raw += b"\x00" * pad
    return _strip([int.from_bytes(raw[i:i + 4], "little") for i in range(0, len(raw), 4)])


def _mag_bit_length(a: Mag) -> int:
    if not a:
        return 0
    return (len(a) - 1) * WORD_BITS + a[-1].bit_length()


def _cmp_mag(a: Mag, b: Mag) -> int:
    if len(a) != len(b):
        return -1 if len(a) < len(b) else 1
    for i in range(len(a) - 1, -1, -1):
        if a[i] != b[i]:
            return -1 if a[i] < b[i] else 1
    return 0


def _add_mag(a: Mag, b: Mag) -> Mag:
    if len(a) < len(b):
        a, b = b, a
    out = []
    carry = 0
    for i in range(len(b)):
        s = a[i] + b[i] + carry
        out.append(s & WORD_MASK)
        carry = s >> WORD_BITS
    for i in range(len(b), len(a)):
        s = a[i] + carry
        out.append(s & WORD_MASK)
        carry = s >> WORD_BITS
    if carry:
        out.append(carry)
    return tuple(out)


def _sub_mag(a: Mag, b: Mag) -> Mag:
    """a - b for |a| >= |b|."""
    out = []
    borrow = 0
    nb = len(b)
    for i in range(len(a)):
        d = a[i] - (b[i] if i < nb else 0) - borrow
        if d < 0:
            d += WORD_BASE
            borrow = 1
        else:
            borrow = 0
        out.append(d)
    return _strip(out)


def _shl_mag(a: Mag, k: int) -> Mag:
    if not a:
        return ()
    wshift, bshift = divmod(k, WORD_BITS)
    out = [0] * wshift
    if not bshift:
        out.extend(a)
        return tuple(out)
    back = WORD_BITS - bshift
    carry = 0
    for w in a:
        out.append(((w << bshift) & WORD_MASK) | carry)
        carry = w >> back
    if carry:
        out.append(carry)
    return tuple(out)


def _shr_mag(a: Mag, k: int) -> Mag:
    wshift, bshift = divmod(k, WORD_BITS)
    if wshift >= len(a):
        return ()
    src = a[wshift:]
    if not bshift:
        return tuple(src)
    back = WORD_BITS - bshift
    last = len(src) - 1
    out = []
    for i, w in enumerate(src):
        hi = src[i + 1] if i < last else 0
        out.append((w >> bshift) | ((hi << back) & WORD_MASK))
    return _strip(out)


def _low_bits_mag(a: Mag, k: int) -> Mag:
    """a mod 2**k."""
    wcount, bcount = divmod(k, WORD_BITS)
    if wcount >= len(a):
        return a
    out = list(a[:wcount])
    if bcount:
        out.append(a[wcount] & ((1 << bcount) - 1))
    return _strip(out)


def _any_low_bit_set(a: Mag, k: int) -> bool:
    wcount, bcount = divmod(k, WORD_BITS)
    for i in range(min(wcount, len(a))):
        if a[i]:
            return True
    return bool(bcount and wcount < len(a) and a[wcount] & ((1 << bcount) - 1))


def _mul_mag(a: Mag, b: Mag) -> Mag:
    """Schoolbook product, O(len(a) * len(b)) word multiplications."""
    if not a or not b:
        return ()
    if len(a) < len(b):
        a, b = b, a
    nb = len(b)
    out = [0] * (len(a) + nb)
    for i, bi in enumerate(b):
        if not bi:
            continue
        carry = 0
        k = i
        for aj in a:
            t = aj * bi + out[k] + carry
            out[k] = t & WORD_MASK
            carry = t >> WORD_BITS
            k += 1
        out[k] = carry
    return _strip(out)


def _sqr_mag(a: Mag) -> Mag:
    """Schoolbook square: cross products once, doubled, plus the diagonal."""
    n = len(a)
    if not n:
        return ()
    out = [0] * (2 * n)
    for i in range(n):
        ai = a[i]
        if not ai:
            continue
        carry = 0
        for j in range(i + 1, n):
            t = ai * a[j] + out[i + j] + carry
            out[i + j] = t & WORD_MASK
            carry = t >> WORD_BITS
        out[i + n] = carry

    carry = 0
    for k in range(2 * n):
        v = (out[k] << 1) | carry
        out[k] = v & WORD_MASK
        carry = v >> WORD_BITS

    carry = 0
    for i in range(n):
        t = a[i] * a[i] + out[2 * i] + carry
        out[2 * i] = t & WORD_MASK
        t = out[2 * i + 1] + (t >> WORD_BITS)
        out[2 * i + 1] = t & WORD_MASK
        carry = t >> WORD_BITS
    return _strip(out)


def _divmod_word(a: Mag, d: int) -> tuple[Mag, int]:
    q = [0] * len(a)
    r = 0
    for i in range(len(a) - 1, -1, -1):
        q[i], r = divmod((r << WORD_BITS) | a[i], d)
    return _strip(q), r


def _divmod_mag(u: Mag, v: Mag) -> tuple[Mag, Mag]:
    """Long division of magnitudes (Knuth, TAOCP vol. 2, algorithm D)."""
    if _cmp_mag(u, v) < 0:
        return (), u
    if len(v) == 1:
        q, r = _divmod_word(u, v[0])
        return q, ((r,) if r else ())

    # Normalize so the divisor's top word has its high bit set
    s = WORD_BITS - v[-1].bit_length()
    vn = _shl_mag(v, s)
    un = list(_shl_mag(u, s))
    un.extend([0] * (len(u) + 1 - len(un)))

    n = len(vn)
    m = len(u) - n
    vtop, vsec = vn[-1], vn[-2]
    q = [0] * (m + 1)

    for j in range(m, -1, -1):
        qhat, rhat = divmod((un[j + n] << WORD_BITS) | un[j + n - 1], vtop)
        while qhat >= WORD_BASE or qhat * vsec > ((rhat << WORD_BITS) | un[j + n - 2]):
            qhat -= 1
            rhat += vtop
            if rhat >= WORD_BASE:
                break

        borrow = 0
        carry = 0
        for i in range(n):
            p = qhat * vn[i] + carry
            carry = p >> WORD_BITS
            t = un[i + j] - (p & WORD_MASK) - borrow
            un[i + j] = t & WORD_MASK
            borrow = 1 if t < 0 else 0
        t = un[j + n] - carry - borrow
        un[j + n] = t & WORD_MASK

        if t < 0:
            # qhat was one too large: add the divisor back
            qhat -= 1
            c = 0
            for i in range(n):
                t = un[i + j] + vn[i] + c
                un[i + j] = t & WORD_MASK
                c = t >> WORD_BITS
            un[j + n] = (un[j + n] + c) & WORD_MASK
        q[j] = qhat

    return _strip(q), _shr_mag(_strip(un[:n]), s)


def _mag_to_decimal(a: Mag) -> str:
    if not a:
        return "0"
    chunks = []
    while a:
        a, r = _divmod_word(a, DEC_CHUNK)
        chunks.append(r)
    head = str(chunks.pop())
    return head + "".join(f"{c:0{DEC_CHUNK_DIGITS}d}" for c in reversed(chunks))


def _mag_to_bytes(a: Mag, length: int) -> bytes:
    raw = b"".join(w.to_bytes(4, "little") for w in a)
    return raw[:length].ljust(length, b"\x00")[::-1]


def _pow10_mag(k: int) -> Mag:
    result: Mag = (1,)
    base: Mag = (10,)
    while k:
        if k & 1:
            result = _mul_mag(result, base)
        k >>= 1
        if k:
            base = _sqr_mag(base)
    return result


# ---------- BigInt ------------------------------------------------------------

@total_ordering
@dataclass(frozen=True, slots=True, eq=False, repr=False)
class BigInt:
    """
    Immutable signed integer. Build values with `from_int`, `from_bytes` or the
    `ZERO` / `ONE` constants; the raw constructor trusts its arguments.
    """
    sign: int
    mag: Mag

    # --- construction ---

    @classmethod
    def from_int(cls, value: int) -> BigInt:
        if value == 0:
            return ZERO
        if value < 0:
            return cls(-1, _mag_from_int(-value))
        return cls(1, _mag_from_int(value))

    @classmethod
    def _signed(cls, sign: int, mag: Mag) -> BigInt:
        return cls(sign, mag) if mag else ZERO

    @classmethod
    def from_bytes(cls, data: bytes) -> BigInt:
        """Decode two's-complement big-endian bytes (BigInteger.toByteArray layout)."""
        if not data:
            raise UserInputError("zero-length byte buffer does not encode an integer.")
        raw = bytes(data)[::-1]
        pad = (-len(raw)) % 4
        negative = raw[-1] >= 0x80
        raw += (b"\xff" if negative else b"\x00") * pad
        words = _strip([int.from_bytes(raw[i:i + 4], "little") for i in range(0, len(raw), 4)])
        if not negative:
            return cls._signed(1, words)
        # value = words - 2**(8 * len(raw)); magnitude is the complement
        full = _shl_mag((1,), 8 * len(raw))
        return cls._signed(-1, _sub_mag(full, words))

    # --- derived attributes ---

    def bit_length(self) -> int:
        return _mag_bit_length(self.mag)

    def signum(self) -> int:
        return self.sign

    def is_zero(self) -> bool:
        return not self.sign

    def test_bit(self, i: int) -> bool:
        """Bit i of the magnitude."""
        require_non_negative(i, "bit index")
        w, b = divmod(i, WORD_BITS)
        return w < len(self.mag) and bool((self.mag[w] >> b) & 1)

    # --- sign handling ---

    def negate(self) -> BigInt:
        return BigInt._signed(-self.sign, self.mag)

    def __neg__(self) -> BigInt:
        return self.negate()

    def __abs__(self) -> BigInt:
        return self if self.sign >= 0 else self.negate()

    # --- additive ---

    def add(self, other: BigInt) -> BigInt:
        if not other.sign:
            return self
        if not self.sign:
            return other
        if self.sign == other.sign:
            return BigInt(self.sign, _add_mag(self.mag, other.mag))
        c = _cmp_mag(self.mag, other.mag)
        if c == 0:
            return ZERO
        if c > 0:
            return BigInt(self.sign, _sub_mag(self.mag, other.mag))
        return BigInt(other.sign, _sub_mag(other.mag, self.mag))

    def subtract(self, other: BigInt) -> BigInt:
        return self.add(other.negate())

    # --- shifts ---

    def shift_left(self, k: int) -> BigInt:
        require_non_negative(k, "shift count")
        if not self.sign or not k:
            return self
        return BigInt(self.sign, _shl_mag(self.mag, k))

    def shift_right(self, k: int) -> BigInt:
        """Arithmetic shift: rounds towards negative infinity, like int >> k."""
        require_non_negative(k, "shift count")
        if not self.sign or not k:
            return self
        mag = _shr_mag(self.mag, k)
        if self.sign < 0 and _any_low_bit_set(self.mag, k):
            mag = _add_mag(mag, (1,))
        return BigInt._signed(self.sign, mag)

    def split(self, k: int) -> tuple[BigInt, BigInt]:
        """(high, low) with self == high * 2**k + low; both keep self's sign."""
        require_non_negative(k, "split point")
        return (
            BigInt._signed(self.sign, _shr_mag(self.mag, k)),
            BigInt._signed(self.sign, _low_bits_mag(self.mag, k)),
        )

    # --- multiplicative ---

    def multiply(self, other: BigInt) -> BigInt:
        """Schoolbook product; see karatsuba.ParallelMultiplier for large operands."""
        if not self.sign or not other.sign:
            return ZERO
        return BigInt(self.sign * other.sign, _mul_mag(self.mag, other.mag))

    def square(self) -> BigInt:
        if not self.sign:
            return ZERO
        return BigInt(1, _sqr_mag(self.mag))

    def divmod_small(self, d: int) -> tuple[BigInt, int]:
        """Truncating division of a non-negative value by 0 < d < 2**32."""
        if self.sign < 0:
            raise UserInputError("divmod_small expects a non-negative dividend.")
        if not 0 < d < WORD_BASE:
            raise UserInputError(f"divisor must fit in one word, got {d}.")
        q, r = _divmod_word(self.mag, d)
        return BigInt._signed(1, q), r

    def divmod_pow10(self, k: int, divisor: BigInt | None = None) -> tuple[BigInt, BigInt]:
        """
        (self // 10**k, self % 10**k) for a non-negative value.
        `divisor` may carry a precomputed 10**k.
        """
        require_non_negative(k, "power of ten")
        if self.sign < 0:
            raise UserInputError("divmod_pow10 expects a non-negative dividend.")
        dmag = divisor.mag if divisor is not None else _pow10_mag(k)
        q, r = _divmod_mag(self.mag, dmag)
        return BigInt._signed(1, q), BigInt._signed(1, r)

    @staticmethod
    def pow10(k: int) -> BigInt:
        require_non_negative(k, "power of ten")
        return BigInt(1, _pow10_mag(k))

    # --- comparison ---

    def compare(self, other: BigInt) -> int:
        if self.sign != other.sign:
            return -1 if self.sign < other.sign else 1
        c = _cmp_mag(self.mag, other.mag)
        return c if self.sign >= 0 else -c

    def __eq__(self, other: object) -> bool:
        o = _coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return self.sign == o.sign and self.mag == o.mag

    def __lt__(self, other: object) -> bool:
        o = _coerce(other)
        if o is NotImplemented:
            return NotImplemented
        return self.compare(o) < 0

    def __hash__(self) -> int:
        # Equal to hash(int(self)) so BigInt(5) and 5 can share dict keys
        return hash(int(self))

    # --- operators ---

    def __add__(self, other):
        o = _coerce(other)
        return NotImplemented if o is NotImplemented else self.add(o)

    __radd__ = __add__

    def __sub__(self, other):
        o = _coerce(other)
        return NotImplemented if o is NotImplemented else self.subtract(o)

    def __rsub__(self, other):
        o = _coerce(other)
        return NotImplemented if o is NotImplemented else o.subtract(self)

    def __mul__(self, other):
        o = _coerce(other)
        return NotImplemented if o is NotImplemented else self.multiply(o)

    __rmul__ = __mul__

    def __lshift__(self, k: int) -> BigInt:
        return self.shift_left(k)

    def __rshift__(self, k: int) -> BigInt:
        return self.shift_right(k)

    def __bool__(self) -> bool:
        return bool(self.sign)

    # --- export ---

    def to_bytes(self) -> bytes:
        """Two's-complement big-endian bytes of minimal length (zero -> b'\\x00')."""
        if self.sign >= 0:
            length = self.bit_length() // 8 + 1
            return _mag_to_bytes(self.mag, length)
        # the sign bit is not counted for negatives: bits of (|x| - 1)
        length = _mag_bit_length(_sub_mag(self.mag, (1,))) // 8 + 1
        full = _shl_mag((1,), 8 * length)
        return _mag_to_bytes(_sub_mag(full, self.mag), length)

    def to_decimal_sequential(self) -> str:
        digits = _mag_to_decimal(self.mag)
        return "-" + digits if self.sign < 0 else digits

    def __int__(self) -> int:
        if not self.sign:
            return 0
        v = int.from_bytes(b"".join(w.to_bytes(4, "little") for w in self.mag), "little")
        return -v if self.sign < 0 else v

    def __str__(self) -> str:
        return self.to_decimal_sequential()

    def __repr__(self) -> str:
        bits = self.bit_length()
        if bits <= 64:
            return f"BigInt({int(self)})"
        return f"BigInt(<{bits} bits, sign={self.sign}>)"


def _coerce(value: object) -> BigInt:
    if isinstance(value, BigInt):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return BigInt.from_int(value)
    return NotImplemented


ZERO = BigInt(0, ())
ONE = BigInt(1, (1,))
BigInt.ZERO = ZERO
BigInt.ONE = ONE
