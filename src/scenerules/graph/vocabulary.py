"""IRIs used by the scene graph projection.

Scene nodes get the stable identifier ``urn:story-adventure:scene:<id>`` so
re-projecting a rule list always lands on the same node for the same scene.
"""

from __future__ import annotations

APP_NAMESPACE = "urn:story-adventure:"

SCENE_TYPE = f"{APP_NAMESPACE}Scene"
RULE_CONDITION = f"{APP_NAMESPACE}RuleCondition"
CONDITION = f"{APP_NAMESPACE}condition"
TO = f"{APP_NAMESPACE}to"
WEIGHT = f"{APP_NAMESPACE}weight"

SCENE_IRI_PREFIX = f"{APP_NAMESPACE}scene:"

RDF_TYPE = "http://www.w3.org/1999/02/22-rdf-syntax-ns#type"
RDFS_CLASS = "http://www.w3.org/2000/01/rdf-schema#Class"
XSD_DOUBLE = "http://www.w3.org/2001/XMLSchema#double"
XSD_STRING = "http://www.w3.org/2001/XMLSchema#string"

_LOCAL_NAME_SEPARATORS = "#/:"


def scene_iri(scene_id: str) -> str:
    """Node identifier for a scene id."""
    return f"{SCENE_IRI_PREFIX}{scene_id}"


def scene_id_from_iri(iri: str) -> str:
    """Bare scene id for a node identifier.

    Identifiers outside the scene prefix (e.g. typed in by hand while
    renaming) fall back to their local name.
    """
    if iri.startswith(SCENE_IRI_PREFIX):
        return iri[len(SCENE_IRI_PREFIX) :]
    cut = max(iri.rfind(sep) for sep in _LOCAL_NAME_SEPARATORS)
    local = iri[cut + 1 :]
    return local or iri


def is_scene_iri(iri: str) -> bool:
    """Check whether *iri* lives under the scene prefix."""
    return iri.startswith(SCENE_IRI_PREFIX) and len(iri) > len(SCENE_IRI_PREFIX)
