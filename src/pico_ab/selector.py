"""Deterministic weighted variant selection.

``VariantSelector`` maps ``(experiment, bucket_key)`` onto one variant by
hashing, so the same caller always lands on the same treatment while
different experiments split the same caller independently.
"""

import hashlib
from typing import Optional, Sequence

from pico_ioc import component

from .experiments import Variant

HASH_SPACE = 2**64
"""int: Size of the hash range; hashes are mapped onto ``[0, 1)`` by dividing by it."""


def stable_hash(experiment: str, bucket_key: str) -> int:
    """Hash an experiment/bucket pair to an unsigned 64-bit integer.

    The first 8 bytes of the SHA-256 digest of ``"{experiment}:{bucket_key}"``
    (UTF-8) are read as a little-endian integer.

    Args:
        experiment: Experiment name, used as salt.
        bucket_key: Caller identity string.

    Returns:
        An integer in ``[0, 2**64)``.
    """
    digest = hashlib.sha256(f"{experiment}:{bucket_key}".encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "little")


@component(scope="singleton")
class VariantSelector:
    """Stateless weighted selector.

    The interval ``[0, total_weight)`` is split into contiguous slices sized by
    weight, in declaration order; the hashed target picks the slice.  A target
    that lands exactly on a slice's upper edge belongs to that slice
    (``target <= cumulative``).
    """

    def pick(self, variants: Sequence[Variant], bucket_key: str) -> Optional[Variant]:
        """Select one variant for *bucket_key*.

        Args:
            variants: Competing variants of one experiment, in declaration order.
            bucket_key: Caller identity string.

        Returns:
            The selected variant, or ``None`` if *variants* is empty.
        """
        if not variants:
            return None
        if len(variants) == 1:
            return variants[0]

        total_weight = sum(v.weight for v in variants)
        target = (stable_hash(variants[0].experiment, bucket_key) / HASH_SPACE) * total_weight
        cumulative = 0.0

        for variant in variants:
            cumulative += variant.weight
            if target <= cumulative:
                return variant

        return variants[-1]
