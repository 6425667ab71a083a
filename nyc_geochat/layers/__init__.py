"""Map layers derived from chat tool outputs.

- kinds: Per-kind descriptors (tool, collection, id, enrichment)
- extractor: Pure ``extract(messages, kind)``
- hydration: Resolve ``geojsonDataId`` references before extraction
- synchronizer: Per-session Empty/Populated state machine
"""

from nyc_geochat.layers.extractor import extract, extract_all
from nyc_geochat.layers.hydration import hydrate_geometry_refs
from nyc_geochat.layers.synchronizer import LayerSynchronizer

__all__ = ["LayerSynchronizer", "extract", "extract_all", "hydrate_geometry_refs"]
