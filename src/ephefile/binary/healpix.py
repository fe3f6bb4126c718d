from __future__ import annotations

from .errors import InvalidNuniq

# Deepest order whose nuniq values fit in a uint64 (16 * 4**30 == 2**64).
MAX_ORDER = 30


def npix(order: int) -> int:
    """Number of pixels covering the sphere at `order` (12 * 4**order)."""
    return 12 << (2 * order)


def nuniq_base(order: int) -> int:
    """First nuniq value of `order` (4 * 4**order)."""
    return 4 << (2 * order)


def nuniq_to_order_pix(nuniq: int, *, offset: int | None = None) -> tuple[int, int]:
    """
    Split a NUNIQ index into (order, pixel).

    order = floor(log2(nuniq / 4) / 2), pixel = nuniq - 4 * 4**order.
    Computed on the bit length so it stays exact over the whole uint64 range,
    where a float log2 would round.
    """
    if nuniq < 4:
        raise InvalidNuniq(f"nuniq {nuniq} has no valid order", offset=offset)
    order = (nuniq.bit_length() - 3) // 2
    return order, nuniq - nuniq_base(order)


def order_pix_to_nuniq(order: int, pixel: int) -> int:
    if not (0 <= order <= MAX_ORDER):
        raise ValueError(f"order must be in 0..{MAX_ORDER}, got {order}")
    if not (0 <= pixel < npix(order)):
        raise ValueError(f"pixel {pixel} out of range for order {order}")
    return nuniq_base(order) + pixel
