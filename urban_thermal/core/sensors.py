"""
Sensor definitions and per-scene preparation.

MODIS LST scenes are quality-masked with the packed ``QC_Day`` field and
converted from their integer encoding to degrees Celsius. Landsat surface
reflectance scenes are rescaled, cloud-masked with the ``QA_PIXEL`` flags of
their sensor family and reduced to ``Red``/``NIR`` bands.

Which Landsat collections feed the vegetation mosaic of a given year is
policy data held in :class:`SensorPolicy`, a lookup table built from the
configuration, so the pipelines stay sensor-agnostic.

Author: Urban Thermal Analysis Team
"""

from dataclasses import dataclass
from typing import Dict, Mapping, Optional, Sequence, Tuple

from .exceptions import ConfigurationError
from .quality_masks import CloudBitSet, QCBitfield, cloud_bit_mask, qc_validity_mask
from .raster import BandSpec, Raster
from .raster_algebra import apply_mask, scale_offset

LST_BAND = 'LST'
RED_BAND = 'Red'
NIR_BAND = 'NIR'


@dataclass(frozen=True)
class ModisLSTProduct:
    """MODIS LST product: thermal band encoding plus its QC field."""

    sensor_id: str = 'MOD11A2'
    lst: BandSpec = BandSpec('LST_Day_1km', 0.02, -273.15)
    qc_band: str = 'QC_Day'
    qc_bitfield: QCBitfield = QCBitfield()

    @property
    def band_names(self) -> Tuple[str, str]:
        return (self.lst.name, self.qc_band)

    @classmethod
    def from_config(cls, section: Mapping) -> 'ModisLSTProduct':
        return cls(
            sensor_id=section.get('sensor_id', 'MOD11A2'),
            lst=BandSpec(section.get('lst_band', 'LST_Day_1km'),
                         float(section.get('scale', 0.02)),
                         float(section.get('offset', -273.15))),
            qc_band=section.get('qc_band', 'QC_Day'),
            qc_bitfield=QCBitfield.from_config(section.get('qc_bitfield', {})),
        )


@dataclass(frozen=True)
class SensorFamily:
    """Landsat sensors sharing band layout, reflectance encoding and QA bits."""

    name: str
    collections: Tuple[str, ...]
    red_band: str
    nir_band: str
    qa_band: str
    cloud_bits: CloudBitSet
    scale: float = 0.0000275
    offset: float = -0.2

    @property
    def band_names(self) -> Tuple[str, str, str]:
        return (self.red_band, self.nir_band, self.qa_band)

    @classmethod
    def from_config(cls, name: str, section: Mapping) -> 'SensorFamily':
        try:
            return cls(
                name=name,
                collections=tuple(section['collections']),
                red_band=section['red_band'],
                nir_band=section['nir_band'],
                qa_band=section.get('qa_band', 'QA_PIXEL'),
                cloud_bits=CloudBitSet(tuple(section['cloud_bits'])),
                scale=float(section.get('scale', 0.0000275)),
                offset=float(section.get('offset', -0.2)),
            )
        except KeyError as e:
            raise ConfigurationError(f"Sensor family '{name}' is missing {e}")


class SensorPolicy:
    """
    Lookup table from analysis year to the Landsat collections to mosaic.

    Args:
        families: Sensor families by name
        year_collections: Explicit year -> collections entries
        default_collections: Collections for years not in the table
    """

    def __init__(self, families: Sequence[SensorFamily],
                 year_collections: Mapping[int, Sequence[str]],
                 default_collections: Optional[Sequence[str]] = None):
        self._family_by_collection: Dict[str, SensorFamily] = {}
        for family in families:
            for collection in family.collections:
                self._family_by_collection[collection] = family

        self._year_collections = {int(y): tuple(c) for y, c in year_collections.items()}
        self._default = tuple(default_collections) if default_collections else None

        referenced = set(self._default or ())
        for collections in self._year_collections.values():
            referenced.update(collections)
        unknown = referenced - set(self._family_by_collection)
        if unknown:
            raise ConfigurationError(f"Collections without a sensor family: {sorted(unknown)}")

    @classmethod
    def from_config(cls, landsat_section: Mapping) -> 'SensorPolicy':
        families = [SensorFamily.from_config(name, section)
                    for name, section in landsat_section['families'].items()]
        return cls(families,
                   landsat_section.get('sensor_policy', {}),
                   landsat_section.get('default_collections'))

    def collections_for(self, year: int) -> Tuple[str, ...]:
        if year in self._year_collections:
            return self._year_collections[year]
        if self._default is None:
            raise ConfigurationError(f"No sensor policy entry for {year} and no default")
        return self._default

    def family_for(self, collection: str) -> SensorFamily:
        try:
            return self._family_by_collection[collection]
        except KeyError:
            raise ConfigurationError(f"Unknown Landsat collection '{collection}'")


def prepare_modis_lst(scene: Raster, product: ModisLSTProduct = ModisLSTProduct()) -> Raster:
    """
    Quality-mask a MODIS scene and convert its LST band to degrees Celsius.

    Returns:
        Raster: Single band ``LST``
    """
    validity = qc_validity_mask(scene.select(product.qc_band), product.qc_bitfield)
    lst = apply_mask(scene.select(product.lst.name), validity)
    return scale_offset(lst, product.lst.scale, product.lst.offset).rename(LST_BAND)


def prepare_landsat_reflectance(scene: Raster, family: SensorFamily) -> Raster:
    """
    Rescale Landsat surface reflectance, drop cloudy pixels and keep Red/NIR.

    Returns:
        Raster: Bands ``Red`` and ``NIR`` in reflectance units
    """
    validity = cloud_bit_mask(scene.select(family.qa_band), family.cloud_bits)
    optical = scale_offset(scene.select(family.red_band, family.nir_band),
                           family.scale, family.offset)
    return apply_mask(optical, validity).rename(RED_BAND, NIR_BAND)
