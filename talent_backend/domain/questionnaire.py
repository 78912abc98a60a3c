"""
Questionnaire field sets.

A field set is the allow-list of questionnaire fields owned by one namespace
(talent domain). The registry uses these lists to route each key of an
incoming profile payload either into the nested questionnaire document or
onto the flat profile columns.
"""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple


class FieldKind(Enum):
    SCALAR = "scalar"
    MULTI = "multi"

    def empty_value(self) -> Any:
        return [] if self is FieldKind.MULTI else ""


@dataclass(frozen=True)
class QuestionnaireFieldSet:
    namespace: str
    fields: Tuple[Tuple[str, FieldKind], ...]

    @classmethod
    def build(
        cls,
        namespace: str,
        scalar: Iterable[str] = (),
        multi: Iterable[str] = (),
    ) -> "QuestionnaireFieldSet":
        entries = [(name, FieldKind.SCALAR) for name in scalar]
        entries += [(name, FieldKind.MULTI) for name in multi]
        names = [name for name, _ in entries]
        if len(names) != len(set(names)):
            raise ValueError(f"Duplicate field names in namespace '{namespace}'")
        return cls(namespace=namespace, fields=tuple(entries))

    @property
    def field_names(self) -> List[str]:
        return [name for name, _ in self.fields]

    def __contains__(self, name: object) -> bool:
        return any(name == field_name for field_name, _ in self.fields)

    def defaults(self) -> Dict[str, Any]:
        """Every field of the namespace set to its empty value."""
        return {name: kind.empty_value() for name, kind in self.fields}


ACTING_FIELDS = QuestionnaireFieldSet.build(
    "acting",
    scalar=[
        "yearsExperience",
        "improvisationComfort",
        "stageCombat",
        "intimateScenesComfort",
        "motionCapture",
        "animalWork",
        "cryingOnCue",
        "periodPieces",
        "physicalComedy",
        "accentExperience",
        "greenScreen",
        "stuntComfort",
        "shakespeareExperience",
        "musicalTheater",
        "currentAgent",
        "currentPublicist",
        "representationStatus",
    ],
    multi=["primarySpecialty", "actingMethod", "roleTypes", "horrorThriller"],
)


@dataclass
class FieldSetRegistry:
    """
    Field sets keyed by namespace.

    Registration guarantees that a field name belongs to at most one
    namespace and never shadows a flat profile column.
    """

    reserved_names: frozenset = frozenset()
    _field_sets: Dict[str, QuestionnaireFieldSet] = field(default_factory=dict, init=False)
    _owners: Dict[str, str] = field(default_factory=dict, init=False)

    def register(self, field_set: QuestionnaireFieldSet) -> None:
        if field_set.namespace in self._field_sets:
            raise ValueError(f"Namespace '{field_set.namespace}' is already registered")

        for name in field_set.field_names:
            if name in self.reserved_names:
                raise ValueError(
                    f"Questionnaire field '{name}' collides with a profile column"
                )
            owner = self._owners.get(name)
            if owner is not None:
                raise ValueError(
                    f"Questionnaire field '{name}' already belongs to namespace '{owner}'"
                )

        self._field_sets[field_set.namespace] = field_set
        for name in field_set.field_names:
            self._owners[name] = field_set.namespace

    def get(self, namespace: str) -> Optional[QuestionnaireFieldSet]:
        return self._field_sets.get(namespace)

    def namespace_for(self, name: str) -> Optional[str]:
        return self._owners.get(name)

    @property
    def namespaces(self) -> List[str]:
        return list(self._field_sets)

    def defaults_for(self, namespace: str) -> Dict[str, Any]:
        field_set = self._field_sets.get(namespace)
        return field_set.defaults() if field_set else {}


@dataclass
class PartitionedPayload:
    flat: Dict[str, Any] = field(default_factory=dict)
    questionnaire: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    nested: Dict[str, Dict[str, Any]] = field(default_factory=dict)

    @property
    def has_questionnaire_data(self) -> bool:
        return bool(self.questionnaire or self.nested)


def merge_documents(
    base: Mapping[str, Mapping[str, Any]], updates: Mapping[str, Mapping[str, Any]]
) -> Dict[str, Dict[str, Any]]:
    """
    Merge questionnaire documents namespace by namespace, field by field.

    Keys present in ``updates`` overwrite, keys absent survive, namespaces not
    mentioned in ``updates`` are carried over as they are. Inputs are not mutated.
    """
    merged = copy.deepcopy(dict(base))
    for namespace, values in updates.items():
        current = merged.get(namespace)
        if not isinstance(current, dict):
            current = {}
        current.update(copy.deepcopy(dict(values)))
        merged[namespace] = current
    return merged
