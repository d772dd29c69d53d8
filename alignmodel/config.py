"""
default settings for the package. Every setting can be overridden by the environment
variable of the same name prefixed by ``ALIGNMODEL_`` (e.g. ``ALIGNMODEL_STRICT=true``)
"""
from .constants import NA_MAPPING_QUALITY
from .util import WeakNamespace

DEFAULTS = WeakNamespace()
"""
- :term:`strict`
- :term:`ignore_unknown_fields`
- :term:`na_mapping_quality`
"""
DEFAULTS.add(
    'strict', False, cast_type=bool,
    defn='raise an error for any validation violation instead of logging a warning and accepting the record')
DEFAULTS.add(
    'ignore_unknown_fields', True, cast_type=bool,
    defn='when reading serialized records skip fields which are not part of the schema. Otherwise raise an error')
DEFAULTS.add(
    'na_mapping_quality', NA_MAPPING_QUALITY, cast_type=int,
    defn='mapping quality value used to indicate the mapping quality was not calculated')
