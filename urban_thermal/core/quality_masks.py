"""
Bit-flag quality masking for satellite QC/QA bands.

Two decoding policies are supported:

- Threshold on a packed field (MODIS LST ``QC_Day``): the mandatory-QA field
  is ``(qc >> shift) & mask_bits`` and a pixel is accepted while the field is
  ``<= threshold`` (0 good, 1 average, 2-3 rejected in the default policy).
- Flag set (Landsat Collection 2 ``QA_PIXEL``): a pixel is rejected if any of
  the configured bit positions is set.

Both return a single-band boolean-valued :class:`Raster` whose samples are
1.0 for valid pixels and 0.0 otherwise. Pixels whose QC value is itself
missing are invalid, and the returned raster carries no mask of its own.

Author: Urban Thermal Analysis Team
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple

import numpy as np

from .exceptions import ConfigurationError
from .raster import Raster


@dataclass(frozen=True)
class QCBitfield:
    """
    Packed quality field with an acceptance threshold.

    Args:
        mask_bits: Bit mask applied after shifting (0b11 for a 2-bit field)
        shift: Position of the field's lowest bit
        threshold: Highest accepted field value; -1 accepts nothing
    """

    mask_bits: int = 0b11
    shift: int = 0
    threshold: int = 1

    def __post_init__(self):
        if self.mask_bits <= 0:
            raise ConfigurationError(f"mask_bits must be positive, got {self.mask_bits}")
        if self.shift < 0:
            raise ConfigurationError(f"shift must be non-negative, got {self.shift}")

    @classmethod
    def from_config(cls, section: Dict) -> 'QCBitfield':
        return cls(
            mask_bits=int(section.get('mask_bits', 0b11)),
            shift=int(section.get('shift', 0)),
            threshold=int(section.get('threshold', 1)),
        )


@dataclass(frozen=True)
class CloudBitSet:
    """Bit positions that each mark a pixel as unusable."""

    bits: Tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self):
        bits = tuple(int(b) for b in self.bits)
        if any(b < 0 or b > 62 for b in bits):
            raise ConfigurationError(f"Bit positions must be in [0, 62], got {bits}")
        object.__setattr__(self, 'bits', bits)

    @property
    def flag_mask(self) -> int:
        mask = 0
        for bit in self.bits:
            mask |= 1 << bit
        return mask


def _qc_integers(qc_raster: Raster) -> Tuple[np.ndarray, np.ndarray]:
    """Single QC band as int64 values plus its own validity."""
    if qc_raster.count != 1:
        raise ValueError(f"Expected a single QC band, got {qc_raster.band_names}")
    present = qc_raster.valid_mask[0]
    values = np.where(present, qc_raster.array.data[0], 0).astype(np.int64)
    return values, present


def qc_validity_mask(qc_raster: Raster, bitfield: QCBitfield = QCBitfield()) -> Raster:
    """
    Decode a packed QC band into a validity raster.

    Args:
        qc_raster: Single-band QC raster
        bitfield: Field location and acceptance threshold

    Returns:
        Raster: Band ``valid`` with 1.0 where quality is accepted

    Examples:
        >>> valid = qc_validity_mask(scene.select('QC_Day'), QCBitfield(0b11, 0, 1))
    """
    values, present = _qc_integers(qc_raster)
    field_value = (values >> bitfield.shift) & bitfield.mask_bits
    valid = present & (field_value <= bitfield.threshold)
    return qc_raster.with_values(valid.astype(np.float64)[np.newaxis], band_names=['valid'])


def cloud_bit_mask(qa_raster: Raster, cloud_bits: CloudBitSet) -> Raster:
    """
    Validity raster from a flag-set QA band: valid = NOT(any flagged bit set).

    Examples:
        >>> clear = cloud_bit_mask(scene.select('QA_PIXEL'), CloudBitSet((1, 3, 4)))
    """
    values, present = _qc_integers(qa_raster)
    flagged = (values & cloud_bits.flag_mask) != 0
    valid = present & ~flagged
    return qa_raster.with_values(valid.astype(np.float64)[np.newaxis], band_names=['valid'])
