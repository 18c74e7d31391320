"""Assessment form constants shared across the SDK.

These values are referenced by the builder, extractor, processor and schema
store.  They mirror conventions of the Cool Farm Platform pathway schemas
and of the form surfaces that render them.

Several constants can be overridden via environment variables so that
deployments can adjust pruning without code changes.
"""

import enum
import os


class OperationMode(str, enum.Enum):
    """Coarse flag that controls how much of a pathway schema is rendered.

    basic -> advanced sections listed in a schema's ``ignored`` array and
             array-typed leaf properties are pruned from the form
    full  -> every section is rendered
    """

    BASIC = "basic"
    FULL = "full"


# Mode used when the caller does not pass one explicitly.
# Overridable via CFP_OPERATION_MODE env var.
DEFAULT_OPERATION_MODE = OperationMode(os.getenv("CFP_OPERATION_MODE", "basic").lower())

# Joins path segments into a FieldKey.  Two characters so it never collides
# with the single underscores used inside property names.
SEPARATOR = "__"

# Structural marker a rendering surface puts inside an array's value
# container; the extractor treats containers without it as malformed.
ITEMS_WRAPPER = "items_wrapper"

# String fields with a larger maxLength render as a textarea.
TEXTAREA_MIN_LENGTH = 255

# Top-level pathway sections skipped in basic mode when a schema document
# does not declare its own ``ignored`` list.
# Overridable via CFP_SCHEMA_IGNORE env var (comma separated).
_DEFAULT_IGNORED = (
    "fertiliser,pesticide,irrigation,fuelEnergy,transport,wasteWater,machinery,"
    "SOC,nonCropEstimated,nonCropMeasured,landUseChangeBiomass,refrigerants,"
    "processing,storage"
)
DEFAULT_IGNORED_PROPERTIES: list[str] = [
    p.strip() for p in os.getenv("CFP_SCHEMA_IGNORE", _DEFAULT_IGNORED).split(",") if p.strip()
]

# Payload values the remote API expects for sections that were never
# rendered.  Injected by the processor, never by the extractor itself.
IGNORED_SECTION_DEFAULTS: dict[str, dict] = {
    "wasteWater": {"treatments": []},
    "pesticide": {"applications": []},
    "fertiliser": {"fertilisers": []},
    "fuelEnergy": {"usages": []},
    "irrigation": {"events": []},
    "transport": {"transports": []},
    "machinery": {"applications": []},
    "nonCropEstimated": {"intercrops": [], "shadeTrees": [], "hedges": []},
    "SOC": {"landUseHistory": None},
    "nonCropMeasured": {"trees": []},
    "landUseChangeBiomass": {"forestChanges": None},
    "refrigerants": {"equipments": []},
}
